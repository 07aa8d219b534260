"""nightscore: sleep episode segmentation and scoring for wearable exports."""

__version__ = "0.1.0"
