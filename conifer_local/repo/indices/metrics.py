import math
from typing import Mapping


def dot(a: list[float], b: list[float]) -> float:
    return sum(x*y for x,y in zip(a,b))


def l2sq(a: list[float], b: list[float]) -> float:
    return sum((x-y)*(x-y) for x,y in zip(a,b))


def cosine(a: list[float], b: list[float]) -> float:
    na = math.sqrt(dot(a, a))
    nb = math.sqrt(dot(b, b))
    if na == 0.0 or nb == 0.0:
        return 0.0
    return dot(a, b) / (na * nb)


def sparse_dot(a: Mapping[int, float], b: Mapping[int, float]) -> float:
    if len(a) > len(b):
        a, b = b, a
    return sum(v * b[i] for i, v in a.items() if i in b)
