from .loader import load_config
from .models import (
    LundaConfig,
    ScheduleConfig,
    TrackingConfig,
    VCSConfig,
)

__all__ = [
    "LundaConfig",
    "ScheduleConfig",
    "TrackingConfig",
    "VCSConfig",
    "load_config",
]
