from cad.api.v1.endpoints import accidents, map, navigation, violations, wanted_persons, weather

__all__ = [
    "navigation",
    "map",
    "accidents",
    "violations",
    "wanted_persons",
    "weather",
]
