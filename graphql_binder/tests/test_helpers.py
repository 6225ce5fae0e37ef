# Copyright 2017-present Kensho Technologies, LLC.
"""Common GraphQL test inputs and resolvers."""
from abc import ABCMeta, abstractmethod
from dataclasses import dataclass
import enum
from functools import partial
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from graphql import GraphQLResolveInfo, GraphQLSchema, build_schema

from ..directives import Directive
from ..resolvable import ExecBuilder, ListNode, ObjectNode, Resolvable
from ..scalars import ID


STAR_WARS_SCHEMA_TEXT = """
schema {
    query: Query
    mutation: Mutation
}

type Query {
    hero(episode: Episode = NEWHOPE): Character
    droid(id: ID!): Droid
    search(text: String!): [SearchResult]
}

type Mutation {
    createReview(episode: Episode!, review: ReviewInput!): Review
}

enum Episode {
    NEWHOPE
    EMPIRE
    JEDI
}

interface Character {
    id: ID!
    name: String!
    friends: [Character]
    appearsIn: [Episode!]!
}

type Human implements Character {
    id: ID!
    name: String!
    friends: [Character]
    appearsIn: [Episode!]!
    height: Float
}

type Droid implements Character {
    id: ID!
    name: String!
    friends: [Character]
    appearsIn: [Episode!]!
    primaryFunction: String
}

union SearchResult = Human | Droid

type Review {
    stars: Int!
    commentary: String
}

input ReviewInput {
    stars: Int!
    commentary: String
}
"""


def get_star_wars_schema() -> GraphQLSchema:
    """Get a schema object for testing."""
    return build_schema(STAR_WARS_SCHEMA_TEXT)


class Episode(enum.Enum):
    NEWHOPE = "NEWHOPE"
    EMPIRE = "EMPIRE"
    JEDI = "JEDI"


class CharacterResolver(metaclass=ABCMeta):
    """Resolves the Character interface, and converts characters into humans and droids."""

    @abstractmethod
    def id(self) -> ID:
        raise NotImplementedError()

    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError()

    @abstractmethod
    def friends(self) -> Optional[List[Optional["CharacterResolver"]]]:
        raise NotImplementedError()

    @abstractmethod
    def appears_in(self) -> List[Episode]:
        raise NotImplementedError()

    def to_human(self) -> Tuple[Optional["HumanResolver"], bool]:
        return None, False

    def to_droid(self) -> Tuple[Optional["DroidResolver"], bool]:
        return None, False


class HumanResolver(CharacterResolver):
    def __init__(self, character_id: str, name: str, height: Optional[float] = None) -> None:
        self._id = ID(character_id)
        self._name = name
        self._height = height
        self._friends: List[CharacterResolver] = []

    def id(self) -> ID:
        return self._id

    def name(self) -> str:
        return self._name

    def friends(self) -> Optional[List[Optional[CharacterResolver]]]:
        return list(self._friends)

    def appears_in(self) -> List[Episode]:
        return [Episode.NEWHOPE, Episode.EMPIRE, Episode.JEDI]

    def height(self) -> Optional[float]:
        return self._height

    def to_human(self) -> Tuple[Optional["HumanResolver"], bool]:
        return self, True


class DroidResolver(CharacterResolver):
    def __init__(self, character_id: str, name: str, primary_function: str) -> None:
        self._id = ID(character_id)
        self._name = name
        self._primary_function = primary_function
        self._friends: List[CharacterResolver] = []

    def id(self) -> ID:
        return self._id

    def name(self) -> str:
        return self._name

    def friends(self) -> Optional[List[Optional[CharacterResolver]]]:
        return list(self._friends)

    def appears_in(self) -> List[Episode]:
        return [Episode.NEWHOPE]

    def primary_function(self) -> Optional[str]:
        return self._primary_function

    def to_droid(self) -> Tuple[Optional["DroidResolver"], bool]:
        return self, True


@dataclass
class HeroArgs:
    episode: Episode


@dataclass
class DroidArgs:
    id: ID


@dataclass
class SearchArgs:
    text: str


@dataclass
class ReviewInput:
    stars: int
    commentary: Optional[str]


@dataclass
class CreateReviewArgs:
    episode: Episode
    review: ReviewInput


class ReviewResolver:
    def __init__(self, review: ReviewInput) -> None:
        self._review = review

    def stars(self) -> int:
        return self._review.stars

    def commentary(self) -> Optional[str]:
        return self._review.commentary


class StarWarsResolver:
    """Root resolver of both the query and the mutation operations of the Star Wars schema."""

    def __init__(self) -> None:
        luke = HumanResolver("1000", "Luke Skywalker", height=1.72)
        r2d2 = DroidResolver("2001", "R2-D2", "Astromech")
        luke._friends.append(r2d2)
        r2d2._friends.append(luke)
        self._characters: Dict[str, CharacterResolver] = {"1000": luke, "2001": r2d2}
        self.reviews: Dict[Episode, List[ReviewInput]] = {}

    def hero(self, info: GraphQLResolveInfo, args: HeroArgs) -> Optional[CharacterResolver]:
        if args.episode == Episode.EMPIRE:
            return self._characters["1000"]
        return self._characters["2001"]

    def droid(self, args: DroidArgs) -> Optional[DroidResolver]:
        character = self._characters.get(str(args.id))
        if character is None:
            return None
        droid, _ = character.to_droid()
        return droid

    def search(self, args: SearchArgs) -> Optional[List[Optional[CharacterResolver]]]:
        return [
            character
            for character in self._characters.values()
            if args.text.lower() in character.name().lower()
        ]

    def create_review(
        self, args: CreateReviewArgs
    ) -> Tuple[Optional[ReviewResolver], Optional[Exception]]:
        if not 0 <= args.review.stars <= 5:
            return None, ValueError(f"Invalid number of stars: {args.review.stars}")
        self.reviews.setdefault(args.episode, []).append(args.review)
        return ReviewResolver(args.review), None


def iter_object_nodes(resolvable: Resolvable) -> Iterator[ObjectNode]:
    """Yield each distinct object node reachable from the given node, exactly once."""
    seen_ids = set()
    to_visit = [resolvable]
    while to_visit:
        node = to_visit.pop()
        if id(node) in seen_ids:
            continue
        seen_ids.add(id(node))

        if isinstance(node, ListNode):
            to_visit.append(node.elem)
        elif isinstance(node, ObjectNode):
            yield node
            to_visit.extend(bound_field.value_exec for bound_field in node.fields.values())
            to_visit.extend(
                type_assertion.type_exec for type_assertion in node.type_assertions.values()
            )


def bind_schema_type(
    schema: GraphQLSchema,
    type_name: str,
    resolver_type: Any,
    use_field_resolvers: bool = False,
    directive_visitors: Optional[Mapping[str, Directive]] = None,
) -> Resolvable:
    """Bind the named schema type to the resolver type, and return the finished node."""
    builder = ExecBuilder(schema, directive_visitors or {}, use_field_resolvers)
    result: Dict[str, Resolvable] = {}
    builder.assign(
        partial(result.__setitem__, type_name), schema.get_type(type_name), resolver_type
    )
    builder.finish()
    return result[type_name]
