class PlainError(Exception):
    pass


def handle() -> None:
    raise PlainError("nothing to expand here")
