"""Tests for tool descriptions, argument coercion and execution."""

from datetime import date, datetime, time
from decimal import Decimal

import pytest

from agentflow.errors import InvalidArgumentError, ToolExecutionError
from agentflow.tool import FunctionTool, ToolCallParameter, ToolCallParameterType, coerce, describe


def make_weather_tool(**kwargs) -> FunctionTool:
    def weather(city: str, days: int = 1, unit: str = "celsius") -> dict:
        return {"city": city, "days": days, "unit": unit}

    return FunctionTool(
        name="weather",
        description="Weather forecast for a city",
        function=weather,
        parameters=[
            ToolCallParameter(name="city", description="City name", required=True),
            ToolCallParameter(name="days", type=ToolCallParameterType.INTEGER),
            ToolCallParameter(name="unit", enums=["celsius", "fahrenheit"]),
        ],
        **kwargs,
    )


class TestCoerce:
    """Raw model values adapted to declared parameter types."""

    def test_none_stays_none(self):
        assert coerce(None, ToolCallParameterType.INTEGER) is None

    def test_blank_string_is_none_for_non_string_targets(self):
        assert coerce("   ", ToolCallParameterType.INTEGER) is None
        assert coerce("", ToolCallParameterType.BOOLEAN) is None

    def test_blank_string_kept_for_string_target(self):
        assert coerce("  ", ToolCallParameterType.STRING) == "  "

    def test_matching_type_passes_through(self):
        assert coerce(42, ToolCallParameterType.INTEGER) == 42
        assert coerce([1, 2], ToolCallParameterType.LIST) == [1, 2]

    def test_integer_from_text(self):
        assert coerce(" 17 ", ToolCallParameterType.INTEGER) == 17
        assert coerce("-3", ToolCallParameterType.LONG) == -3

    def test_integer_rejects_fraction(self):
        with pytest.raises(InvalidArgumentError):
            coerce("1.5", ToolCallParameterType.INTEGER)

    def test_bool_is_not_an_integer(self):
        with pytest.raises(InvalidArgumentError):
            coerce(True, ToolCallParameterType.INTEGER)

    def test_boolean_from_text(self):
        assert coerce("TRUE", ToolCallParameterType.BOOLEAN) is True
        assert coerce("0", ToolCallParameterType.BOOLEAN) is False
        with pytest.raises(InvalidArgumentError):
            coerce("maybe", ToolCallParameterType.BOOLEAN)

    def test_float_from_int(self):
        assert coerce(3, ToolCallParameterType.DOUBLE) == 3.0

    def test_any_passes_everything(self):
        value = {"nested": [1]}
        assert coerce(value, ToolCallParameterType.ANY) is value

    def test_float_rejects_non_decimal_text(self):
        assert coerce("-1.5e3", ToolCallParameterType.FLOAT) == -1500.0
        assert coerce(".5", ToolCallParameterType.DOUBLE) == 0.5
        for text in ("1_000", "infinity", "nan", "0x10"):
            with pytest.raises(InvalidArgumentError):
                coerce(text, ToolCallParameterType.DOUBLE)

    def test_decimal_from_text_and_number(self):
        assert coerce("19.99", ToolCallParameterType.DECIMAL) == Decimal("19.99")
        assert coerce(0.1, ToolCallParameterType.DECIMAL) == Decimal("0.1")
        with pytest.raises(InvalidArgumentError):
            coerce("NaN", ToolCallParameterType.DECIMAL)

    def test_temporal_values_from_iso_text(self):
        assert coerce("2024-05-01", ToolCallParameterType.DATE) == date(2024, 5, 1)
        assert coerce("2024-05-01T09:30:00", ToolCallParameterType.DATETIME) == datetime(2024, 5, 1, 9, 30)
        assert coerce("09:30", ToolCallParameterType.TIME) == time(9, 30)
        assert coerce(date(2024, 1, 1), ToolCallParameterType.DATE) == date(2024, 1, 1)

    def test_bad_temporal_text_is_invalid(self):
        with pytest.raises(InvalidArgumentError):
            coerce("first of may", ToolCallParameterType.DATE)
        with pytest.raises(InvalidArgumentError):
            coerce("25:00", ToolCallParameterType.TIME)

    def test_target_without_parser_yields_none(self):
        assert coerce("[1, 2]", ToolCallParameterType.LIST) is None
        assert coerce("{}", ToolCallParameterType.MAP) is None


class TestParameter:
    def test_enums_only_for_string_like(self):
        with pytest.raises(ValueError):
            ToolCallParameter(name="n", type=ToolCallParameterType.INTEGER, enums=["1"])


class TestDescribe:
    """Tool description handed to models."""

    def test_properties_follow_declaration_order(self):
        description = describe(make_weather_tool())

        assert description["name"] == "weather"
        assert description["description"] == "Weather forecast for a city"
        schema = description["input_schema"]
        assert [p["name"] for p in schema["properties"]] == ["city", "days", "unit"]
        assert schema["required"] == ["city"]
        assert schema["properties"][1]["type"] == "integer"
        assert schema["properties"][2]["enums"] == ["celsius", "fahrenheit"]

    def test_function_schema(self):
        schema = make_weather_tool().to_function_schema()

        assert schema["type"] == "function"
        parameters = schema["function"]["parameters"]
        assert list(parameters["properties"]) == ["city", "days", "unit"]
        assert parameters["properties"]["unit"]["enum"] == ["celsius", "fahrenheit"]
        assert parameters["required"] == ["city"]

    def test_long_names_are_truncated(self):
        tool = FunctionTool(name="namespace_" + "x" * 70, description="", function=lambda: None)
        assert len(tool.function_name()) <= 64

    def test_duplicate_parameters_rejected(self):
        with pytest.raises(ValueError):
            FunctionTool(
                name="t",
                description="",
                function=lambda a: a,
                parameters=[ToolCallParameter(name="a"), ToolCallParameter(name="a")],
            )


class TestExecute:
    """Dispatching model-supplied arguments."""

    async def test_arguments_are_coerced(self):
        result = await make_weather_tool().execute('{"city": "Oslo", "days": "3"}')
        assert result == '{"city": "Oslo", "days": 3, "unit": "celsius"}'

    async def test_missing_required_argument(self):
        with pytest.raises(ToolExecutionError, match="city"):
            await make_weather_tool().execute('{"days": 2}')

    async def test_value_outside_enums(self):
        with pytest.raises(ToolExecutionError, match="kelvin"):
            await make_weather_tool().execute({"city": "Oslo", "unit": "kelvin"})

    async def test_invalid_json(self):
        with pytest.raises(ToolExecutionError):
            await make_weather_tool().execute("{not json")

    async def test_async_function(self):
        async def echo(text: str) -> str:
            return text.upper()

        tool = FunctionTool(
            name="echo",
            description="Echo",
            function=echo,
            parameters=[ToolCallParameter(name="text", required=True)],
        )
        assert await tool.execute({"text": "hi"}) == "HI"

    async def test_function_failure_is_wrapped(self):
        def broken():
            raise RuntimeError("boom")

        tool = FunctionTool(name="broken", description="", function=broken)
        with pytest.raises(ToolExecutionError, match="boom") as info:
            await tool.execute(None)
        assert info.value.tool_name == "broken"

    async def test_required_date_argument(self):
        def schedule(day):
            return f"booked {day.strftime('%A')}"

        tool = FunctionTool(
            name="schedule",
            description="Book a day",
            function=schedule,
            parameters=[ToolCallParameter(name="day", type=ToolCallParameterType.DATE, required=True)],
        )
        assert await tool.execute({"day": "2024-05-01"}) == "booked Wednesday"

    async def test_date_enums_compare_as_iso_text(self):
        tool = FunctionTool(
            name="slot",
            description="Pick a slot",
            function=lambda day: day.isoformat(),
            parameters=[
                ToolCallParameter(name="day", type=ToolCallParameterType.DATE, enums=["2024-05-01"]),
            ],
        )
        assert await tool.execute({"day": "2024-05-01"}) == "2024-05-01"
        with pytest.raises(ToolExecutionError, match="not in"):
            await tool.execute({"day": "2024-05-02"})
