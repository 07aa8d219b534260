"""CLI for the nightscore sleep engine."""

from __future__ import annotations

import json
import logging
import os

import click

from nightscore.loader import load_midpoints, load_raw_segments

LOG_FORMAT = "[nightscore %(asctime)s] %(name)s: %(message)s"


def _echo_report(report) -> None:
    click.echo(f"\n{'=' * 60}")
    click.echo(f"  Night: {report.night or 'n/a'}")
    click.echo(f"{'=' * 60}")

    if report.primary is None:
        click.echo("  No primary sleep episode (insufficient data to score).")
    else:
        ep = report.primary
        score = report.primary_score
        b = score.breakdown
        click.echo(f"  In bed:        {ep.episode_start:%Y-%m-%d %H:%M} -> "
                   f"{ep.episode_end:%Y-%m-%d %H:%M} ({ep.in_bed_minutes} min)")
        click.echo(f"  Sleep:         {score.sleep_hours:.1f} h "
                   f"(eff {score.percentages.efficiency:.0%})")
        click.echo(f"  Stages:        deep {ep.deep_minutes} / rem {ep.rem_minutes} / "
                   f"light {ep.light_minutes} / awake {ep.awake_minutes} min")
        click.echo(f"  Awakenings:    {ep.awakenings_count} "
                   f"(longest {ep.longest_awake_bout_minutes} min)")
        click.echo(f"  Score:         {score.score}/100 ({score.quality})")
        click.echo(f"    duration {b.duration_component}, efficiency {b.efficiency_component}, "
                   f"deep {b.deep_component}, rem {b.rem_component}, "
                   f"fragmentation {b.fragmentation_component}, "
                   f"regularity {b.regularity_component}")
        if report.validation is not None and not report.validation.valid:
            click.echo(f"  INVALID:       {report.validation.reason}")

    for nap, nap_score in zip(report.naps, report.nap_scores):
        restorative = " restorative" if nap_score.restorative else ""
        click.echo(f"  Nap:           {nap.episode_start:%H:%M} "
                   f"{nap.in_bed_minutes} min, score {nap_score.score}/10{restorative}")


def _write_output(output: str | None, payload) -> None:
    if output:
        with open(output, "w") as f:
            json.dump(payload, f, indent=2)
        click.echo(f"\nOutput written to {output}")


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging (or set NIGHTSCORE_DEBUG=1).")
def main(debug: bool) -> None:
    """nightscore: sleep episode detection and scoring."""
    if debug or os.environ.get("NIGHTSCORE_DEBUG") == "1":
        logging.basicConfig(level=logging.DEBUG, format=LOG_FORMAT)


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--tz", default="UTC", help="IANA time zone of the sleeper.")
@click.option("--history", default=None, type=click.Path(exists=True),
              help="File of previous sleep midpoints (for regularity).")
@click.option("--json", "as_json", is_flag=True, help="Print the session record as JSON.")
@click.option("--output", "-o", default=None, help="Write the session record JSON to file.")
@click.option("--source", default="apple-health", help="Source label for the session record.")
def score(file: str, tz: str, history: str | None, as_json: bool,
          output: str | None, source: str) -> None:
    """Score the primary night (and naps) in a sleep export."""
    from nightscore.engine.debug import log_ingest_summary
    from nightscore.engine.pipeline import score_night
    from nightscore.engine.summary import build_session_record

    raw = load_raw_segments(file)
    log_ingest_summary(raw, tz)
    midpoints = load_midpoints(history, tz) if history else None

    report = score_night(raw, tz=tz, previous_midpoints=midpoints)
    record = build_session_record(report, source=source)

    if as_json:
        click.echo(record.to_json() if record else "null")
    else:
        _echo_report(report)

    _write_output(output, record.to_dict() if record else None)


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--tz", default="UTC", help="IANA time zone of the sleeper.")
@click.option("--json", "as_json", is_flag=True, help="Print session records as JSON.")
@click.option("--output", "-o", default=None, help="Write session records JSON to file.")
@click.option("--source", default="apple-health", help="Source label for the session records.")
def nights(file: str, tz: str, as_json: bool, output: str | None, source: str) -> None:
    """Score every night in a multi-day export."""
    from nightscore.engine.pipeline import score_nights
    from nightscore.engine.summary import build_session_record

    raw = load_raw_segments(file)
    reports = score_nights(raw, tz=tz)
    records = [build_session_record(r, source=source) for r in reports]
    payload = [r.to_dict() for r in records if r is not None]

    if as_json:
        click.echo(json.dumps(payload, indent=2))
    else:
        for report in reports:
            _echo_report(report)
        click.echo(f"\n{len(reports)} night(s), {len(payload)} with a primary episode.")

    _write_output(output, payload)


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--tz", default="UTC", help="IANA time zone of the sleeper.")
def episodes(file: str, tz: str) -> None:
    """List clustered sleep episodes with flags and validation."""
    from nightscore.engine.episodes import cluster_into_episodes
    from nightscore.engine.segments import parse_raw_segments
    from nightscore.engine.validation import validate_sleep_episode

    raw = load_raw_segments(file)
    eps = cluster_into_episodes(parse_raw_segments(raw, tz), tz)
    if not eps:
        click.echo("No episodes.")
        return

    for ep in eps:
        result = validate_sleep_episode(ep)
        status = "ok" if result.valid else f"invalid: {result.reason}"
        click.echo(f"  {ep!r}  [{status}]")


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--tz", default="UTC", help="IANA time zone of the sleeper.")
def inspect(file: str, tz: str) -> None:
    """Summarize a raw export: time range, stage labels and how they decode."""
    from nightscore.engine.debug import ingest_summary

    raw = load_raw_segments(file, verbose=True)
    click.echo(json.dumps(ingest_summary(raw, tz), indent=2))


if __name__ == "__main__":
    main()
