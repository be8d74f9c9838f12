from __future__ import annotations

from cad.models.navigation import Location


# Niagara region points used by the patrol map when no geocoder is reachable.
GAZETTEER: tuple[Location, ...] = (
    Location("niagara-falls", "Niagara Falls", 43.0962, -79.0377, "Niagara Falls, Ontario"),
    Location("horseshoe-falls", "Chutes Horseshoe", 43.0790, -79.0747, "Niagara Parkway, Niagara Falls, Ontario"),
    Location("clifton-hill", "Clifton Hill", 43.0915, -79.0765, "Clifton Hill, Niagara Falls, Ontario"),
    Location("rainbow-bridge", "Pont Rainbow", 43.0901, -79.0678, "Rainbow Bridge, Niagara Falls, Ontario"),
    Location("niagara-police-hq", "Quartier général de la police régionale de Niagara", 43.1166, -79.1966, "5700 Valley Way, Niagara Falls, Ontario"),
    Location("greater-niagara-hospital", "Hôpital général du Grand Niagara", 43.1006, -79.0996, "5546 Portage Road, Niagara Falls, Ontario"),
    Location("st-catharines", "St. Catharines", 43.1594, -79.2469, "St. Catharines, Ontario"),
    Location("welland", "Welland", 42.9922, -79.2483, "Welland, Ontario"),
    Location("fort-erie", "Fort Erie", 42.9017, -78.9722, "Fort Erie, Ontario"),
    Location("peace-bridge", "Pont de la Paix", 42.9065, -78.9052, "Peace Bridge, Fort Erie, Ontario"),
    Location("niagara-on-the-lake", "Niagara-on-the-Lake", 43.2550, -79.0773, "Niagara-on-the-Lake, Ontario"),
    Location("thorold", "Thorold", 43.1236, -79.1993, "Thorold, Ontario"),
    Location("queenston-heights", "Hauteurs de Queenston", 43.1606, -79.0530, "Queenston Heights, Niagara-on-the-Lake, Ontario"),
    Location("qew-glendale", "QEW sortie Glendale", 43.1394, -79.1797, "Queen Elizabeth Way, Niagara-on-the-Lake, Ontario"),
    Location("lundys-lane", "Lundy's Lane", 43.0877, -79.1010, "Lundy's Lane, Niagara Falls, Ontario"),
    Location("niagara-square", "Niagara Square", 43.0716, -79.1010, "7555 Montrose Road, Niagara Falls, Ontario"),
    Location("brock-university", "Université Brock", 43.1176, -79.2477, "1812 Sir Isaac Brock Way, St. Catharines, Ontario"),
    Location("hamilton", "Hamilton", 43.2557, -79.8711, "Hamilton, Ontario"),
    Location("toronto", "Toronto", 43.6532, -79.3832, "Toronto, Ontario"),
    Location("toronto-city-hall", "Hôtel de ville de Toronto", 43.6534, -79.3841, "100 Queen Street West, Toronto, Ontario"),
    Location("pearson-airport", "Aéroport Pearson", 43.6777, -79.6248, "6301 Silver Dart Drive, Mississauga, Ontario"),
    Location("highway-401", "Voie rapide 401", 43.7230, -79.4660, "Highway 401, Toronto, Ontario"),
)
