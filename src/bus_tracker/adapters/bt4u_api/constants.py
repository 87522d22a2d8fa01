"""Constants for the BT4U transit feed.

The feed is an ASP.NET web service answering plain GET requests with XML.
"""

BT4U_BASE_URL = "http://216.252.195.248/webservices/bt4u_webservice.asmx"
BT4U_BUS_INFO_PATH = "GetCurrentBusInfo"
BT4U_DEPARTURES_PATH = "GetNextDepartures"

# Element holding one bus in a GetCurrentBusInfo response
BUS_ELEMENT = "LatestInfoTable"

BUS_VEHICLE_FIELD = "AgencyVehicleName"
BUS_ROUTE_FIELD = "RouteShortName"
BUS_LATITUDE_FIELD = "Latitude"
BUS_LONGITUDE_FIELD = "Longitude"
BUS_PATTERN_FIELD = "PatternName"
BUS_UPDATED_FIELD = "LastUpdated"

# Timestamps are local time, e.g. "10/18/2026 8:15:42 AM"
BT4U_TIME_FORMAT = "%m/%d/%Y %I:%M:%S %p"

# Element holding one departure in a GetNextDepartures response
DEPARTURE_ELEMENT = "NextDepartures"

DEPARTURE_ROUTE_FIELD = "RouteName"
DEPARTURE_NOTES_FIELD = "AdjustedDepartureTime_TripNotes"
