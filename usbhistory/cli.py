# Registry parser, to reconstruct USB mass-storage connection history from a live registry or an offline SYSTEM hive

# Uses regipy offline hive parser library from Martin G. Korman: https://github.com/mkorman90/regipy
# Live registries (local or remote) are read through winreg & advapi32 RegQueryInfoKeyW

# Extracts from the following Registry keys/values:
## SYSTEM\Select\Current -> to get the current control set (-c current)
## SYSTEM\<controlset>\Enum\USBSTOR -> device class, unit, FriendlyName, first & last connected
## SYSTEM\MountedDevices -> \DosDevices\<letter>: drive letter mappings

# First connected is the Last Write time of the device class key, last connected that of the unit key
# Offline hives are checked for dirtiness; .LOG1/.LOG2 transaction logs beside the hive are replayed

# CSV option produces two CSV output files - usb-history.csv & mounted-devices.csv
## These output files are written to the folder the command was run from

# Dependencies:
## pip3 install regipy

# Limitations:
## Only parses the SYSTEM hive; SOFTWARE, NTUSER.DAT & event logs are not read
## ASCII data of MountedDevices drops every zero byte, matching older reports bit-for-bit
## Live & remote registry access only works on Windows

import csv
import logging
import os
import sys

from . import config
from .collector import USBHistoryCollector
from .correlate import lastDriveLetters
from .errors import RegistryError
from .filetime import isoTime
from .models import MOUNTED_DEVICE_COLUMNS, USB_HISTORY_COLUMNS
from .mounted import MountedDeviceDecoder
from .registry import openAccessor, resolveControlSet, usbstorPath


# Function to display help info
def printHelp():
	print('Usage: parseusbhistory <options>')
	print('Options:')
	print('	-h 			Print this help message')
	print('	-s <SYSTEM hive>	Parse this offline SYSTEM hive. If omitted, the live registry is read')
	print('	-r <host>		Read the live registry of this remote host (ignored with "-s")')
	print('	-c <controlset>		Control set holding Enum\\USBSTOR, e.g. ControlSet002, or "current"')
	print('				to follow SYSTEM\\Select\\Current. Default is ' + config.DEFAULT_CONTROL_SET)
	print('	-o <csv|keyval>		Output to either CSV or key-value pair format. Default is key-value pairs')
	print('				Note: outputs two CSV files - ' + config.USB_HISTORY_CSV + ' & ' + config.MOUNTED_DEVICES_CSV + ' in the current folder')
	print('	-d			Debug logging')
	print()
	print('Example commands:')
	print('parseusbhistory -s C:/cases/1/SYSTEM -c current -o csv')
	print('(In Windows CMD as Administrator:) parseusbhistory -r WKS042')
	print()


# Function to parse command line arguments into a dict of options
def parseArgs(argv):
	opts = {
		"help": False,
		"hive": "",
		"host": None,
		"controlSet": config.DEFAULT_CONTROL_SET,
		"csv": False,
		"debug": False,
	}
	flags = {"-s": "hive", "-r": "host", "-c": "controlSet", "-o": "output"}
	pending = ""
	for arg in argv:
		if pending:
			if pending == "output":
				opts["csv"] = arg == "csv"
			else:
				opts[pending] = arg
			pending = ""
		elif arg == "-h":
			opts["help"] = True
		elif arg == "-d":
			opts["debug"] = True
		elif arg in flags:
			pending = flags[arg]
		else:
			raise ValueError("Unknown argument: " + arg)
	if pending:
		raise ValueError("Missing value for " + pending)
	return opts


# Function to output parsed data as Key/Value pairs
def outputKV(records, entries, letters):
	for record in records:
		print("Device Friendly Name:", record.friendlyName)
		print("Device ID:", record.deviceId)
		print("Unique ID:", record.uniqueId)
		print("iSerialNumber:", record.serialNumber)
		print("First Connected:", isoTime(record.firstConnected))
		print("Last Connected:", isoTime(record.lastConnected))
		print("Last Drive Letter:", letters.get((record.deviceId, record.uniqueId), ""))
		for error in record.errors:
			print("Error:", error)
		print()
	for entry in entries:
		print("Volume Name:", entry.volumeName)
		print("Volume Letter:", entry.driveLetter)
		print("Hexadecimal Data:", entry.hexText)
		print("ASCII Data:", entry.decodedText)
		print()


# Function to output rows as CSV
def outputCSV(rows, columns, outfile):
	with open(outfile, "w", newline="", encoding="utf-8") as of:
		writer = csv.DictWriter(of, fieldnames=columns)
		writer.writeheader()
		for row in rows:
			writer.writerow(row)


def main(argv=None):
	try:
		opts = parseArgs(sys.argv[1:] if argv is None else argv)
	except ValueError as e:
		print(e)
		printHelp()
		return 1
	if opts["help"]:
		printHelp()
		return 0

	logging.basicConfig(level=logging.DEBUG if opts["debug"] else logging.INFO, format="%(message)s")
	print("Registry parser, to reconstruct USB mass-storage history from the SYSTEM hive")

	host = None if opts["hive"] else opts["host"]
	try:
		accessor = openAccessor(opts["hive"])
	except RegistryError as e:
		print("Error:", e)
		print()
		printHelp()
		return 1

	# the accessor holds registry connections (remote ones included) until the walk is over
	with accessor:
		try:
			controlSet = opts["controlSet"]
			if controlSet.lower() == "current":
				controlSet = resolveControlSet(accessor, host=host)
		except RegistryError as e:
			print("Error:", e)
			return 1

		status = 0
		records = []
		entries = []
		try:
			records = USBHistoryCollector(accessor, usbstorPath(controlSet), host=host).collect()
		except RegistryError as e:
			print("Error: USB history could not be read -", e)
			status = 1
		try:
			entries = MountedDeviceDecoder(accessor, host=host).entries()
		except RegistryError as e:
			print("Error: mounted devices could not be read -", e)
			status = 1

	print()
	if opts["csv"]:
		outputCSV([r.asRow() for r in records], USB_HISTORY_COLUMNS, config.USB_HISTORY_CSV)
		outputCSV([e.asRow() for e in entries], MOUNTED_DEVICE_COLUMNS, config.MOUNTED_DEVICES_CSV)
		print("Written:", os.path.abspath(config.USB_HISTORY_CSV), "&", os.path.abspath(config.MOUNTED_DEVICES_CSV))
	else:
		outputKV(records, entries, lastDriveLetters(records, entries))
	return status


if __name__ == "__main__":
	sys.exit(main())
