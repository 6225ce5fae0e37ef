# Copyright 2020-present Kensho Technologies, LLC.
from datetime import datetime, timedelta, timezone
import unittest

from ..decode import Unmarshaler, implements_graphql_type, is_unmarshaler_type
from ..scalars import ID, Time


class DuckTypedDate:
    """Implements the Unmarshaler methods without inheriting from Unmarshaler."""

    def __init__(self) -> None:
        self.value = None

    def implements_graphql_type(self, name: str) -> bool:
        return name == "Date"

    def unmarshal_graphql(self, value: object) -> None:
        self.value = value


class ScalarTests(unittest.TestCase):
    def test_id(self) -> None:
        self.assertTrue(implements_graphql_type(ID, "ID"))
        self.assertFalse(implements_graphql_type(ID, "String"))

        value = ID()
        value.unmarshal_graphql("1000")
        self.assertEqual(ID("1000"), value)
        self.assertEqual("1000", str(value))
        self.assertEqual('"1000"', value.marshal_json())

        value.unmarshal_graphql(2001)
        self.assertEqual(ID(2001), value)
        self.assertEqual('"2001"', value.marshal_json())
        self.assertNotEqual(ID("2001"), value)
        self.assertEqual(hash(ID(2001)), hash(value))

        for invalid_value in (True, 1.5, None, ["1"]):
            with self.assertRaises(ValueError):
                ID().unmarshal_graphql(invalid_value)

    def test_time(self) -> None:
        self.assertTrue(implements_graphql_type(Time, "Time"))
        self.assertFalse(implements_graphql_type(Time, "DateTime"))

        expected_datetime = datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        value = Time()
        value.unmarshal_graphql("2020-01-02T03:04:05Z")
        self.assertEqual(Time(expected_datetime), value)
        self.assertEqual('"2020-01-02T03:04:05+00:00"', value.marshal_json())

        value.unmarshal_graphql(expected_datetime.timestamp())
        self.assertEqual(expected_datetime, value.value)

        offset_datetime = datetime(2020, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))
        value.unmarshal_graphql(offset_datetime)
        self.assertEqual(expected_datetime, value.value)

        self.assertEqual("null", Time().marshal_json())

        for invalid_value in ("2020-01-02", "not a time", datetime(2020, 1, 2), True, None):
            with self.assertRaises(ValueError):
                Time().unmarshal_graphql(invalid_value)

    def test_unmarshaler_capability(self) -> None:
        self.assertTrue(is_unmarshaler_type(ID))
        self.assertTrue(is_unmarshaler_type(Time))
        self.assertTrue(is_unmarshaler_type(DuckTypedDate))
        self.assertTrue(issubclass(DuckTypedDate, Unmarshaler))
        self.assertTrue(implements_graphql_type(DuckTypedDate, "Date"))

        self.assertFalse(is_unmarshaler_type(str))
        self.assertFalse(is_unmarshaler_type(ID("1")))
        self.assertFalse(implements_graphql_type(str, "String"))
