from collections import namedtuple

from . import config


# Base error for anything that goes wrong reading the registry
class RegistryError(Exception):
	def __init__(self, path="", code=None, message=""):
		self.path = path
		self.code = code
		if not message:
			message = self.kind() + ": " + path if path else self.kind()
		super().__init__(message)

	def kind(self):
		return self.__class__.__name__


class KeyNotFound(RegistryError):
	pass


class AccessDenied(RegistryError):
	pass


# Remote host could not be contacted
class Unreachable(RegistryError):
	pass


class BufferTooSmall(RegistryError):
	pass


class NativeCallFailure(RegistryError):
	def __init__(self, code, path="", message=""):
		if not message:
			message = "native call failed with status " + str(code)
			if path:
				message += ": " + path
		super().__init__(path, code, message)


# Hive data regipy couldn't parse (corrupt cells, not a hive file at all)
class HiveCorruption(RegistryError):
	pass


# Value name doesn't follow the \DosDevices\<letter>: pattern
class MalformedValueName(RegistryError):
	pass


# Function to map a Windows status code onto the error taxonomy
def errorFromCode(code, path=""):
	if code in config.NOT_FOUND_CODES:
		return KeyNotFound(path, code)
	if code == config.ERROR_ACCESS_DENIED:
		return AccessDenied(path, code)
	if code in config.UNREACHABLE_CODES:
		return Unreachable(path, code)
	if code in config.BUFFER_CODES:
		return BufferTooSmall(path, code)
	return NativeCallFailure(code, path)


# A failure captured on one record instead of aborting the walk: which field it hit & the error itself
class RecordError(namedtuple("RecordError", ["field", "error"])):
	__slots__ = ()

	@property
	def kind(self):
		return self.error.kind()

	def __str__(self):
		return self.field + ": " + str(self.error)
