# Typed ctypes binding of advapi32!RegQueryInfoKeyW
# The binding is declared once by initNativeBinding() when a live accessor is created, never per call
# wintypes is imported lazily: the module also has to load on hosts without advapi32

import ctypes
import logging
import sys
from collections import namedtuple

from . import config
from .errors import NativeCallFailure, errorFromCode

logger = logging.getLogger(__name__)

# Metadata returned by RegQueryInfoKeyW; lastWriteTime is the raw 64-bit FILETIME
KeyInfo = namedtuple("KeyInfo", ["className", "subkeyCount", "valueCount", "lastWriteTime"])

_regQueryInfoKey = None


# Function to declare the RegQueryInfoKeyW signature & cache the function pointer
def initNativeBinding():
	global _regQueryInfoKey
	if _regQueryInfoKey is not None:
		return _regQueryInfoKey
	if sys.platform != "win32":
		raise NativeCallFailure(config.ERROR_NOT_SUPPORTED, message="RegQueryInfoKeyW is only available on Windows")

	from ctypes import wintypes

	advapi32 = ctypes.WinDLL("advapi32", use_last_error=True)
	func = advapi32.RegQueryInfoKeyW
	func.argtypes = [
		wintypes.HKEY,                    # hKey
		wintypes.LPWSTR,                  # lpClass
		wintypes.LPDWORD,                 # lpcchClass
		wintypes.LPDWORD,                 # lpReserved
		wintypes.LPDWORD,                 # lpcSubKeys
		wintypes.LPDWORD,                 # lpcbMaxSubKeyLen
		wintypes.LPDWORD,                 # lpcbMaxClassLen
		wintypes.LPDWORD,                 # lpcValues
		wintypes.LPDWORD,                 # lpcbMaxValueNameLen
		wintypes.LPDWORD,                 # lpcbMaxValueLen
		wintypes.LPDWORD,                 # lpcbSecurityDescriptor
		ctypes.POINTER(wintypes.FILETIME),  # lpftLastWriteTime
	]
	func.restype = wintypes.LONG
	_regQueryInfoKey = func
	logger.debug("RegQueryInfoKeyW binding initialised")
	return func


# Function to combine the two halves of a FILETIME structure
def fileTimeToInt(ft):
	return (ft.dwHighDateTime << 32) | ft.dwLowDateTime


# Function to query a key's metadata with a class-name scratch buffer of 'bufferChars' characters
# Raises BufferTooSmall when the class name doesn't fit; the caller decides whether to retry
def queryKeyInfo(func, hkey, bufferChars, path=""):
	from ctypes import wintypes

	className = ctypes.create_unicode_buffer(bufferChars)
	classLength = wintypes.DWORD(bufferChars)
	subkeys = wintypes.DWORD()
	maxSubkeyLen = wintypes.DWORD()
	maxClassLen = wintypes.DWORD()
	values = wintypes.DWORD()
	maxValueNameLen = wintypes.DWORD()
	maxValueLen = wintypes.DWORD()
	securityDescriptor = wintypes.DWORD()
	lastWrite = wintypes.FILETIME()

	status = func(
		hkey,
		className,
		ctypes.byref(classLength),
		None,
		ctypes.byref(subkeys),
		ctypes.byref(maxSubkeyLen),
		ctypes.byref(maxClassLen),
		ctypes.byref(values),
		ctypes.byref(maxValueNameLen),
		ctypes.byref(maxValueLen),
		ctypes.byref(securityDescriptor),
		ctypes.byref(lastWrite),
	)
	if status != config.ERROR_SUCCESS:
		raise errorFromCode(status, path)
	return KeyInfo(className.value, subkeys.value, values.value, fileTimeToInt(lastWrite))
