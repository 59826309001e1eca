"""
demo.py

Minimal walk-through of Laminate.
- Loads a record (standing in for an ORM model)
- Stacks two independently written layers onto it
- Shows forwarding, layered methods and collision reporting
"""

import logging

from laminate import Layer, MethodAlreadyDefinedError, capability, layers_of


class Record(Layer):
    def __init__(self, record_id):
        self._id = record_id

    @classmethod
    def find(cls, record_id):
        return cls(record_id)

    @property
    def id(self):
        return self._id

    def __repr__(self):
        return f"{type(self).__name__}(id={self._id})"


class Game(Record):
    def get_some_game_data(self):
        return "some_game_data"


@capability
class Lpis:
    def get_some_lpi_data(self):
        return f"some_lpi_data for game {self.id}"


@capability
class BrainAreas:
    def get_some_brain_area_data(self):
        return "some_brain_area_data"


@capability
class Cheats:
    def get_some_game_data(self):
        return "tampered_game_data"


def main():
    logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    game = Game.find(123).with_layer(Lpis).with_layer(BrainAreas)

    print(repr(game))
    print(type(game).__qualname__, [m.name for m in layers_of(game)])
    print(game.id)
    print(game.get_some_game_data())
    print(game.get_some_lpi_data())
    print(game.get_some_brain_area_data())

    try:
        game.with_layer(Cheats)
    except MethodAlreadyDefinedError as e:
        print(f"\n{e}")

    cheated = game.with_layer(Cheats, allow_overrides=True)
    print(cheated.get_some_game_data())


if __name__ == "__main__":
    main()
