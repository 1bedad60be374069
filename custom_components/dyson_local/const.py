"""Constants for the Dyson local integration."""

from __future__ import annotations

from datetime import timedelta

DOMAIN = "dyson_local"

# Message discriminators carried in the ``msg`` field of every envelope.
MSG_CURRENT_STATE = "CURRENT-STATE"
MSG_STATE_CHANGE = "STATE-CHANGE"
MSG_ENVIRONMENTAL_DATA = "ENVIRONMENTAL-CURRENT-SENSOR-DATA"
MSG_STATE_SET = "STATE-SET"
MSG_REQUEST_CURRENT_STATE = "REQUEST-CURRENT-STATE"

INBOUND_MESSAGES = frozenset(
    {MSG_CURRENT_STATE, MSG_STATE_CHANGE, MSG_ENVIRONMENTAL_DATA}
)

# Sentinel values.
VALUE_ON = "ON"
VALUE_OFF = "OFF"
VALUE_AUTO = "AUTO"
VALUE_FAN = "FAN"
VALUE_INIT = "INIT"
VALUE_INVALID = "INV"
VALUE_CUSTOM = "CUST"
VALUE_TILT = "TILT"
VALUE_HEAT = "HEAT"
VALUE_HUMIDIFY = "HUMD"

# Product state field codes.
CODE_POWER = "fpwr"
CODE_FAN_MODE = "fmod"
CODE_AUTO = "auto"
CODE_FAN_STATE = "fnst"
CODE_FAN_SPEED = "fnsp"
CODE_OSCILLATION = "oson"
CODE_OSCILLATION_LOWER = "osal"
CODE_OSCILLATION_UPPER = "osau"
CODE_ANGLE = "ancp"
CODE_CONTINUOUS_MONITORING = "rhtm"
CODE_NIGHT_MODE = "nmod"
CODE_FOCUS = "ffoc"
CODE_DIRECTION = "fdir"
CODE_TILT = "tilt"
CODE_ERROR = "ercd"
CODE_WARNING = "wacd"
CODE_CARBON_FILTER = "cflr"
CODE_HEPA_FILTER = "hflr"
CODE_FILTER_HOURS = "filf"
CODE_HEATING_MODE = "hmod"
CODE_HEATING_TARGET = "hmax"
CODE_HUMIDIFY = "hume"
CODE_HUMIDIFY_STATE = "msta"
CODE_HUMIDIFY_AUTO = "haut"
CODE_HUMIDITY_TARGET = "humt"

# Environmental sensor field codes.
SENSOR_TEMPERATURE = "tact"
SENSOR_HUMIDITY = "hact"
SENSOR_PARTICULATE = "pact"
SENSOR_VOLATILE = "vact"
SENSOR_PM25 = "p25r"
SENSOR_PM10 = "p10r"
SENSOR_VOC = "va10"
SENSOR_NOX = "noxl"
SENSOR_FORMALDEHYDE = "hchr"

ADVANCED_SENSORS = (SENSOR_PM25, SENSOR_PM10, SENSOR_VOC, SENSOR_NOX)

# Oscillation geometry.
SWING_WIDTHS = (45, 90, 180, 350)
SWING_CENTER_OFFSET = 180
SWING_MIN_ANGLE = 5
SWING_MAX_ANGLE = 355
SWING_CENTER_RANGE = (-130, 130)
DEFAULT_SWING_WIDTH = 90

FAN_SPEED_STEP = 10
FILTER_CHANGE_THRESHOLD = 10
DEFAULT_FILTER_LIFE_HOURS = 4300

KELVIN_OFFSET = 273.15
# Setpoints are written with a rounded offset.
SETPOINT_KELVIN_OFFSET = 273.0

DEFAULT_REFRESH_INTERVAL = timedelta(seconds=60)
STATE_TOPIC = "{product_type}/{serial}/status/current"
COMMAND_TOPIC = "{product_type}/{serial}/command"
