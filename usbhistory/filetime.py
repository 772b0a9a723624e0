from datetime import datetime, timedelta, timezone

# Windows FILETIME epoch
FILETIME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)


# Function to convert a Key Last Write timestamp (100ns ticks since 1601-01-01 UTC) to a datetime
# Usage - convertWin64time(key.header.last_modified)
def convertWin64time(ticks):
	if ticks is None:
		return None
	return FILETIME_EPOCH + timedelta(microseconds=(ticks // 10))


# Function to render an optional timestamp as ISO-8601 text ("" when absent)
def isoTime(instant):
	if instant is None:
		return ""
	return instant.isoformat()
