from .collector import USBHistoryCollector
from .errors import (
	AccessDenied,
	BufferTooSmall,
	KeyNotFound,
	MalformedValueName,
	NativeCallFailure,
	RegistryError,
	Unreachable,
)
from .models import MountedDeviceEntry, RegistryTimestamp, USBDeviceRecord
from .mounted import MountedDeviceDecoder, decode, decodeMountedDevices
from .registry import LiveRegistry, OfflineHive, RegistryAccessor, openAccessor
from .timestamp import TimestampProbe

__all__ = [
	"USBHistoryCollector",
	"MountedDeviceDecoder",
	"TimestampProbe",
	"RegistryAccessor",
	"LiveRegistry",
	"OfflineHive",
	"openAccessor",
	"decode",
	"decodeMountedDevices",
	"RegistryTimestamp",
	"MountedDeviceEntry",
	"USBDeviceRecord",
	"RegistryError",
	"KeyNotFound",
	"AccessDenied",
	"Unreachable",
	"BufferTooSmall",
	"NativeCallFailure",
	"MalformedValueName",
]
