import typing as t


class Connectivity(t.Protocol):
    def is_online(self) -> bool: ...


class StaticConnectivity(object):
    """Connectivity flag set by whoever observes the network."""

    def __init__(self, online: bool = True):
        self.online = online

    def is_online(self) -> bool:
        return self.online

    def set_online(self, online: bool) -> None:
        self.online = online
