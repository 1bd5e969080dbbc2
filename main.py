from rich.pretty import pprint

from ligature import *


class Child:
    def __init__(self):
        self.name = None
        self.text = None


class Parent:
    def __init__(self):
        self.child = None
        self.verbose = False


registry.register(Child, Schema(
    Setting("Name", "n", attribute="name"),
    Setting("Text", attribute="text", default=None),
))
registry.register(Parent, Schema(
    Setting("Child", type=Child, attribute="child"),
    Setting("Verbose", "v", type=bool, attribute="verbose", flag=True, default=False),
))


if __name__ == '__main__':
    parent = Parent()
    pprint(bind(parent, r'-Child "-Name "-Name \"Test Value\"" -Text TestText" -v'))
    pprint(vars(parent.child))
