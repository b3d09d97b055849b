import pytest

from config import get_config, set_config
from models import PedigreeInput, Relation, Sex


def make_ped(sexes, father, mother, relation=(), ids=None):
    """Indexed input from parallel lists; sexes as "m"/"f"/None."""
    n = len(sexes)
    return PedigreeInput(
        id=tuple(ids) if ids is not None else tuple(f"p{i}" for i in range(n)),
        sex=tuple(Sex.parse(s) for s in sexes),
        father_index=tuple(father),
        mother_index=tuple(mother),
        relation=tuple(relation),
    )


@pytest.fixture
def nuclear_ped():
    # father 0, mother 1, child 2
    return make_ped(["m", "f", None], [-1, -1, 0], [-1, -1, 1], [Relation(0, 1)])


@pytest.fixture
def cousin_marriage_ped():
    # Siblings 2 and 3 marry outsiders 4 and 5; their children 6 and 7 marry
    # each other and have child 8.
    return make_ped(
        ["m", "f", "m", "f", "f", "m", "m", "f", "f"],
        [-1, -1, 0, 0, -1, -1, 2, 5, 6],
        [-1, -1, 1, 1, -1, -1, 4, 3, 7],
    )


@pytest.fixture
def two_family_ped():
    # Founder couples (0, 1) and (3, 4); their children 2 and 5 have child 6
    return make_ped(
        ["m", "f", "f", "m", "f", "m", None],
        [-1, -1, 0, -1, -1, 3, 5],
        [-1, -1, 1, -1, -1, 4, 2],
    )


@pytest.fixture
def restore_config():
    saved = get_config()
    yield
    set_config(saved)
