# Copyright 2020-present Kensho Technologies, LLC.
from dataclasses import dataclass
from typing import List, Optional
import unittest

from graphql import build_schema

from ..exceptions import PackerError
from ..packer import MAX_INT, PackerBuilder, StructPacker
from ..scalars import ID, Time
from .test_helpers import Episode


INPUT_SCHEMA = build_schema(
    """
    type Query {
        search(
            text: String!
            limit: Int = 10
            ratio: Float
            exact: Boolean = false
            episodes: [Episode!]
            ids: [ID!]
            since: Time
            filter: Filter
        ): Int
    }

    scalar Time

    enum Episode {
        NEWHOPE
        EMPIRE
        JEDI
    }

    input Filter {
        name: String
        children: [Filter!]
    }
    """
)


@dataclass
class Filter:
    name: Optional[str]
    children: Optional[List["Filter"]]


@dataclass
class SearchArgs:
    text: str
    limit: int
    ratio: Optional[float]
    exact: bool
    episodes: Optional[List[Episode]]
    ids: Optional[List[ID]]
    since: Optional[Time]
    filter: Optional[Filter]


class PlainSearchArgs:
    """Args class that is not a dataclass, and is filled in attribute by attribute."""

    text: str
    limit: int
    ratio: Optional[float]
    exact: bool
    episodes: List[Episode]
    ids: List[ID]
    since: Optional[Time]
    filter: Optional[Filter]


def _make_search_packer(resolver_type: type) -> StructPacker:
    """Return a finished packer of the arguments of the search field."""
    builder = PackerBuilder()
    search_field = INPUT_SCHEMA.query_type.fields["search"]
    packer = builder.make_struct_packer(search_field.args, resolver_type)
    builder.finish()
    return packer


class PackerTests(unittest.TestCase):
    def test_defaults_and_missing_values(self) -> None:
        packer = _make_search_packer(SearchArgs)
        expected_args = SearchArgs(
            text="droid",
            limit=10,
            ratio=None,
            exact=False,
            episodes=None,
            ids=None,
            since=None,
            filter=None,
        )
        self.assertEqual(expected_args, packer.pack({"text": "droid"}))

        with self.assertRaises(PackerError) as context:
            packer.pack({})
        self.assertIn('"text"', str(context.exception))

    def test_values(self) -> None:
        packer = _make_search_packer(SearchArgs)
        packed = packer.pack(
            {
                "text": "droid",
                "limit": 3,
                "ratio": 1,
                "exact": True,
                "episodes": ["EMPIRE", Episode.JEDI],
                "ids": "2001",
                "since": "2020-01-02T03:04:05Z",
                "filter": {"name": "R2", "children": [{"name": "D2"}]},
            }
        )
        self.assertEqual(3, packed.limit)
        self.assertEqual(1.0, packed.ratio)
        self.assertIsInstance(packed.ratio, float)
        self.assertTrue(packed.exact)
        self.assertEqual([Episode.EMPIRE, Episode.JEDI], packed.episodes)
        # Single values are accepted for list arguments.
        self.assertEqual([ID("2001")], packed.ids)
        self.assertEqual(2020, packed.since.value.year)
        self.assertEqual(
            Filter(name="R2", children=[Filter(name="D2", children=None)]), packed.filter
        )

    def test_plain_args_class(self) -> None:
        packer = _make_search_packer(PlainSearchArgs)
        packed = packer.pack({"text": "droid", "episodes": ["NEWHOPE"], "ids": [1000]})
        self.assertIsInstance(packed, PlainSearchArgs)
        self.assertEqual("droid", packed.text)
        self.assertEqual(10, packed.limit)
        self.assertIsNone(packed.ratio)
        self.assertEqual([Episode.NEWHOPE], packed.episodes)
        self.assertEqual([ID(1000)], packed.ids)

    def test_invalid_values(self) -> None:
        packer = _make_search_packer(SearchArgs)
        invalid_arguments = (
            {"text": 1},
            {"text": "droid", "limit": True},
            {"text": "droid", "limit": MAX_INT + 1},
            {"text": "droid", "exact": 1},
            {"text": "droid", "episodes": ["PHANTOM"]},
            {"text": "droid", "episodes": [None]},
            {"text": "droid", "ids": [1.5]},
            {"text": "droid", "since": "yesterday"},
            {"text": "droid", "filter": "R2"},
            {"text": "droid", "filter": {"children": [None]}},
        )
        for arguments in invalid_arguments:
            with self.assertRaises(PackerError):
                packer.pack(arguments)

        with self.assertRaises(PackerError):
            packer.pack(None)

    def test_incompatible_args_classes(self) -> None:
        @dataclass
        class NonOptionalArgs:
            text: str
            limit: int
            ratio: float
            exact: bool
            episodes: Optional[List[Episode]]
            ids: Optional[List[ID]]
            since: Optional[Time]
            filter: Optional[Filter]

        @dataclass
        class OptionalTextArgs:
            text: Optional[str]
            limit: int

        @dataclass
        class BytesArgs:
            text: bytes

        search_field = INPUT_SCHEMA.query_type.fields["search"]
        with self.assertRaises(PackerError) as context:
            PackerBuilder().make_struct_packer(search_field.args, NonOptionalArgs)
        self.assertIn('Field "ratio"', str(context.exception))

        with self.assertRaises(PackerError) as context:
            PackerBuilder().make_struct_packer(search_field.args, OptionalTextArgs)
        self.assertIn('Field "text"', str(context.exception))

        with self.assertRaises(PackerError) as context:
            PackerBuilder().make_struct_packer(search_field.args, BytesArgs)
        self.assertIn("can not be used for input values", str(context.exception))

        with self.assertRaises(PackerError) as context:
            PackerBuilder().make_struct_packer(search_field.args, Optional[SearchArgs])
        self.assertIn("hint", str(context.exception))

    def test_packers_must_be_finished(self) -> None:
        search_field = INPUT_SCHEMA.query_type.fields["search"]
        packer = PackerBuilder().make_struct_packer(search_field.args, SearchArgs)
        with self.assertRaises(AssertionError):
            packer.pack({"text": "droid"})
