# Default locations & limits used when reconstructing USB history from a SYSTEM hive

# Hive names accepted by the accessors
HKLM = "HKEY_LOCAL_MACHINE"
HIVE_ALIASES = {
	"HKEY_LOCAL_MACHINE": HKLM,
	"HKLM": HKLM,
}

# Registry roots (relative to HKEY_LOCAL_MACHINE)
MOUNTED_DEVICES_PATH = "SYSTEM\\MountedDevices"
DEFAULT_CONTROL_SET = "ControlSet001"
USBSTOR_SUBPATH = "Enum\\USBSTOR"
USBSTOR_PATH = "SYSTEM\\" + DEFAULT_CONTROL_SET + "\\" + USBSTOR_SUBPATH
SELECT_PATH = "SYSTEM\\Select"

# Property names
FRIENDLY_NAME = "FriendlyName"
CURRENT_CONTROL_SET_VALUE = "Current"

# Scratch buffer (in characters) handed to RegQueryInfoKeyW for the class name
SCRATCH_BUFFER_CHARS = 255
MAX_SCRATCH_BUFFER_CHARS = 32768

# Windows status codes
ERROR_SUCCESS = 0
ERROR_FILE_NOT_FOUND = 2
ERROR_PATH_NOT_FOUND = 3
ERROR_ACCESS_DENIED = 5
ERROR_BAD_NETPATH = 53
ERROR_NOT_SUPPORTED = 50
ERROR_INSUFFICIENT_BUFFER = 122
ERROR_MORE_DATA = 234
RPC_S_SERVER_UNAVAILABLE = 1722
RPC_S_CALL_FAILED = 1726

NOT_FOUND_CODES = (ERROR_FILE_NOT_FOUND, ERROR_PATH_NOT_FOUND)
UNREACHABLE_CODES = (ERROR_BAD_NETPATH, RPC_S_SERVER_UNAVAILABLE, RPC_S_CALL_FAILED)
BUFFER_CODES = (ERROR_MORE_DATA, ERROR_INSUFFICIENT_BUFFER)

# CSV output files written by the command line
USB_HISTORY_CSV = "usb-history.csv"
MOUNTED_DEVICES_CSV = "mounted-devices.csv"

# Registry value types (winreg numbering)
REG_SZ = 1
REG_EXPAND_SZ = 2
REG_BINARY = 3
REG_DWORD = 4
REG_DWORD_BIG_ENDIAN = 5
REG_MULTI_SZ = 7
REG_QWORD = 11
