import re
from datetime import timedelta


class TimeParser:
    """
    Parses durations such as "1s", "0.5s" or "1m30s" into seconds. A bare
    number is seconds. The whole string must be made of amount/unit pairs.
    """

    def __init__(self) -> None:
        self._units = {
            "s": "seconds",
            "m": "minutes",
            "h": "hours",
            "d": "days",
            "w": "weeks",
        }
        self._pattern = re.compile(
            r"(?P<val>\d+(\.\d+)?)(?P<unit>[smhdw]?)",
            flags=re.I,
        )
        self._format = re.compile(
            r"(\d+(\.\d+)?[smhdw]?)+",
            flags=re.I,
        )

    def parse(self, time_amount: str | int | float) -> float:
        if isinstance(time_amount, (int, float)):
            return float(time_amount)

        time_amount = time_amount.strip()

        if self._format.fullmatch(time_amount) is None:
            raise ValueError(f"Invalid duration '{time_amount}'")

        durations: dict[str, float] = {}
        for match in self._pattern.finditer(time_amount):
            unit = self._units.get(
                match.group("unit").lower(),
                "seconds",
            )
            durations[unit] = durations.get(unit, 0) + float(match.group("val"))

        return float(timedelta(**durations).total_seconds())
