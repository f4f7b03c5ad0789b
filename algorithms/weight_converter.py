class WeightConverter:
    """Convert body measurements between metric and imperial units."""

    KG_TO_LB = 2.20462

    @staticmethod
    def kg_to_lb(kg: float) -> float:
        return round(kg * WeightConverter.KG_TO_LB, 2)

    @staticmethod
    def lb_to_kg(lb: float) -> float:
        return round(lb / WeightConverter.KG_TO_LB, 2)

    @classmethod
    def for_unit(cls, kg: float | None, unit: str) -> float | None:
        """Return ``kg`` expressed in ``unit`` (``metric`` or ``imperial``)."""
        if kg is None:
            return None
        if unit == "imperial":
            return cls.kg_to_lb(kg)
        if unit == "metric":
            return round(kg, 2)
        raise ValueError(f"unknown unit: {unit}")

    @staticmethod
    def label(unit: str) -> str:
        return "lb" if unit == "imperial" else "kg"
