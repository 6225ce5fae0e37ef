from typing import Iterable, List, Optional

from graphql_binder import bind_schema

SCHEMA = '''
    type Query {
        hero: Character
    }

    type Character {
        name: String!
        friends: [Character]
    }
'''


class CharacterResolver:
    def __init__(self, name: str, friends: Iterable["CharacterResolver"] = ()) -> None:
        self._name = name
        self._friends = list(friends)

    def name(self) -> str:
        return self._name

    def friends(self) -> Optional[List[Optional["CharacterResolver"]]]:
        return self._friends


class RootResolver:
    def hero(self) -> Optional[CharacterResolver]:
        return CharacterResolver("R2-D2", [CharacterResolver("Luke Skywalker")])


# Bind the resolvers to the schema, failing if any schema field cannot be resolved.
bound_schema = bind_schema(SCHEMA, RootResolver())

# Walk the resolvable tree to resolve the hero's name.
hero_field = bound_schema.query.fields["hero"]
hero, _ = hero_field.invoke(bound_schema.query_resolver)
hero_name, _ = hero_field.value_exec.fields["name"].invoke(hero)
