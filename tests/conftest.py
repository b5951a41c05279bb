import numpy as np
import pytest

from lattice_lab.closure import Context, ImplicationalSystem


@pytest.fixture
def powerset_is():
    """No rules over {1,2,3}: every subset is closed (Boolean lattice B3)."""
    return ImplicationalSystem(elements=[1, 2, 3])


@pytest.fixture
def single_implication_is():
    """{1} -> {2} over {1,2,3}."""
    return ImplicationalSystem(elements=[1, 2, 3], rules=[([1], [2])])


@pytest.fixture
def cyclic_is():
    """1 and 2 imply each other, 3 -> 4: a non reduced system with cyclic precedence."""
    return ImplicationalSystem(elements=[1, 2, 3, 4], rules=[([1], [2]), ([2], [1]), ([3], [4])])


@pytest.fixture
def contranominal_context():
    """Object i has every attribute but the i-th one: concept lattice is B3."""
    incidence = ~np.eye(3, dtype=bool)
    return Context([1, 2, 3], ["a", "b", "c"], incidence)


@pytest.fixture
def chain_context():
    """Nested intents: concepts form a 3-element chain."""
    incidence = [
        [1, 1, 1],
        [0, 1, 1],
        [0, 0, 1],
    ]
    return Context([1, 2, 3], ["a", "b", "c"], incidence)
