"""storeshots: store-listing screenshot walkthrough for Android apps."""
from .walkthrough import (
    ScreenshotWalkthrough,
    SkippedStep,
    WalkthroughResult,
    run_walkthrough,
)

__version__ = "0.1.0"

__all__ = [
    "ScreenshotWalkthrough",
    "SkippedStep",
    "WalkthroughResult",
    "run_walkthrough",
]
