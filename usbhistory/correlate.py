# Joins USBSTOR records with MountedDevices entries
# A \DosDevices\X: value whose data contains the device serial (UTF-16LE) was the last letter it got


# Function to map (deviceId, uniqueId) -> last drive letter, e.g. "E:\"
def lastDriveLetters(records, entries):
	letters = {}
	entries = list(entries)
	for record in records:
		serial = record.serialNumber.encode("utf-16le")
		if not serial:
			continue
		for entry in entries:
			if serial in bytes(entry.rawBytes):
				letters[(record.deviceId, record.uniqueId)] = entry.driveLetter + "\\"
	return letters
