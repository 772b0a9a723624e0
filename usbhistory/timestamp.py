import logging

from . import config
from .errors import BufferTooSmall, KeyNotFound
from .filetime import convertWin64time
from .models import RegistryTimestamp

logger = logging.getLogger(__name__)


# Reads the last write time of registry keys through an accessor
# Each query gets its own scratch buffer size, so independent keys can be probed concurrently
class TimestampProbe:

	def __init__(self, accessor, bufferSize=config.SCRATCH_BUFFER_CHARS, maxBufferSize=config.MAX_SCRATCH_BUFFER_CHARS):
		if bufferSize < 1:
			raise ValueError("bufferSize must be at least 1 character, got " + str(bufferSize))
		if maxBufferSize < bufferSize:
			raise ValueError("maxBufferSize must not be smaller than bufferSize")
		self.accessor = accessor
		self.bufferSize = bufferSize
		self.maxBufferSize = maxBufferSize

	# Function to get the timestamp of an already opened key
	# handle is None when resolving the key failed upstream
	def probe(self, handle, keyFullName=None):
		if handle is None:
			raise KeyNotFound(keyFullName or "")
		keyFullName = keyFullName or handle.path

		size = self.bufferSize
		while True:
			try:
				ticks = self.accessor.queryLastWriteTime(handle, size)
			except BufferTooSmall:
				if size >= self.maxBufferSize:
					raise
				size = min(size * 2, self.maxBufferSize)
				logger.debug("Class name buffer too small for %s, retrying with %d characters", keyFullName, size)
				continue
			return RegistryTimestamp(keyFullName, convertWin64time(ticks))

	# Function to open hive\path (optionally on a remote host), read its timestamp & close it again
	def probePath(self, hive, path, host=None):
		handle = self.accessor.openKey(hive, path, host)
		try:
			return self.probe(handle)
		finally:
			self.accessor.closeKey(handle)
