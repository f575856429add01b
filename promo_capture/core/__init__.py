from .config_manager import ConfigManager, get_config_manager
from .errors import (
    DeliveryError,
    DeliveryErrorKind,
    DestinationRejected,
    DeviceUnavailable,
    InvalidTransition,
    LocationUnresolved,
    NetworkTimeout,
    PayloadTooLarge,
    PlatformShareUnsupported,
    PromoCaptureError,
    RecordingEmpty,
    UnsupportedFormat,
)
from .logging_config import configure_logging
from .logging_utils import get_module_logger
from .platform_info import PlatformInfo, get_platform_info

__all__ = [
    'ConfigManager',
    'get_config_manager',
    'DeliveryError',
    'DeliveryErrorKind',
    'DestinationRejected',
    'DeviceUnavailable',
    'InvalidTransition',
    'LocationUnresolved',
    'NetworkTimeout',
    'PayloadTooLarge',
    'PlatformShareUnsupported',
    'PromoCaptureError',
    'RecordingEmpty',
    'UnsupportedFormat',
    'configure_logging',
    'get_module_logger',
    'PlatformInfo',
    'get_platform_info',
]
