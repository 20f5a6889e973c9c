from enum import Enum

class Column(str, Enum):
    """
    Time series column identifiers of the LBNL interval file format.

    Note:
        Names are stored upper-cased; the file format is
        case-insensitive, so parsers upper-case what they read before
        comparing against these values.
    """
    TIMESTAMP = 'TIME.LOCAL'
    WB_ELECTRICITY = 'WBELECTRICITY.KWH'
    WB_GAS = 'WBGAS.KBTU'
    CHW = 'CHW.KBTU'
    HW = 'HW.KBTU'
    STEAM = 'STEAM.KBTU'
    COOLING_ELECTRICITY = 'COOLINGELECTRICITY.KWH'
    COOLING_GAS = 'COOLINGGAS.KBTU'
    HEATING_ELECTRICITY = 'HEATINGELECTRICITY.KWH'
    HEATING_GAS = 'HEATINGGAS.KBTU'
    VENTILATION_ELECTRICITY = 'VENTILIATIONELECTRICITY.KWH'
    LIGHTING_ELECTRICITY = 'LIGHTINGELECTRICITY.KWH'
    DRY_BULB_OAT = 'DBOAT.F'
    WET_BULB_OAT = 'WBOAT.F'

class HeaderField(str, Enum):
    """Header block identifiers of the LBNL training and forecast files."""
    BUILDING_ID = 'BUILDINGID'
    BUILDING_TYPE_NAICS = 'BUILDINGTYPE.NAICS'

class SuppField(str, Enum):
    """Header and section identifiers of the supplementary file."""
    BUILDING_ID = 'BUILDINGID'
    LAG_WINDOW = 'LAGWINDOW'
    WORKING_DAYS = 'WORKINGDAYS'
    ENERGY_TO_MODEL = 'ENERGYTOMODEL'
    SEASON_START = 'TRAININGSEASONSTARTDATE'
    SEASON_END = 'TRAININGSEASONENDDATE'
    WORKING_DAY_END = 'WORKINGDAYEND'
    MIN_WINDOW_SIZE = 'MINWINDOWSIZE'
    MAX_WINDOW_SIZE = 'MAXWINDOWSIZE'
    ENERGY_THRESHOLD = 'ENERGYTHRESHOLD'
    NON_WORKING_DAYS = 'NONWORKINGDAYS'

class EnergyAggregation(str, Enum):
    """Competing daily energy quantities scored against temperature."""
    DAILY_TOTAL = 'DailyTotal'
    AVERAGE_HOURLY = 'AverageHourly'

# Temperature columns in order of preference
TEMPERATURE_FIELDS = (Column.DRY_BULB_OAT, Column.WET_BULB_OAT)
# Energy columns a training file may carry; the first present is modelled
ENERGY_FIELDS = (
    Column.WB_ELECTRICITY,
    Column.WB_GAS,
    Column.CHW,
    Column.HW,
    Column.STEAM,
    Column.COOLING_ELECTRICITY,
    Column.COOLING_GAS,
    Column.HEATING_ELECTRICITY,
    Column.HEATING_GAS,
    Column.VENTILATION_ELECTRICITY,
    Column.LIGHTING_ELECTRICITY,
)
# Section marker of the holiday file
HOLIDAY_SECTION = 'DATE'
# Required header fields
MAIN_REQUIRED = (HeaderField.BUILDING_ID,)
SUPP_REQUIRED = (
    SuppField.BUILDING_ID,
    SuppField.LAG_WINDOW,
    SuppField.WORKING_DAYS,
    SuppField.ENERGY_TO_MODEL,
    SuppField.SEASON_START,
    SuppField.SEASON_END,
)
