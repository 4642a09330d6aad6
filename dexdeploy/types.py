import click


class MinFloat(click.ParamType):
    name = "minfloat"

    def __init__(self, min_value):
        self.min_value = min_value

    def convert(self, value, param, ctx):
        try:
            fvalue = float(value)
        except (TypeError, ValueError):
            self.fail(f"{value} is not a valid number", param, ctx)
        if fvalue < self.min_value:
            self.fail(
                f"{value} is less than the minimum allowed value of {self.min_value}", param, ctx
            )
        return fvalue


class RegistryName(click.ParamType):
    """UNIT=NAME, publishing a unit under another registry name."""

    name = "unit=name"

    def convert(self, value, param, ctx):
        if isinstance(value, tuple):
            return value
        unit_name, separator, registry_name = value.partition("=")
        if not (separator and unit_name and registry_name):
            self.fail(f"{value} is not of the form UNIT=NAME", param, ctx)
        return unit_name, registry_name
