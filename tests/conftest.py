import pytest

from step_diff.models import Part, Relation, StepFileData, StepFileHeader


SR = "Shape_Representation"


def _assembly(names, edges=(), id_offset=0, header=None, representation=SR):
    """
    Build a StepFileData from part names and (parent, child) name pairs.

    Part ids are 1..N shifted by id_offset, relation raw ids 100.. shifted
    the same way, so two calls with the same offset reuse the same numbers.
    """
    parts = [Part(id_offset + i + 1, "PD", name, representation) for i, name in enumerate(names)]
    ids = {p.name: p.id for p in parts}
    relations = [
        Relation(
            label=f"{child}{i + 1}:1",
            parent_part_id=ids[parent],
            child_part_id=ids[child],
            raw_id=id_offset + 100 + i,
            relation_kind="NAUO",
        )
        for i, (parent, child) in enumerate(edges)
    ]
    return StepFileData(parts=parts, relations=relations, header=header)


@pytest.fixture
def assembly():
    return _assembly


@pytest.fixture
def car(assembly):
    """Car with a body and two occurrences of a wheel sub-assembly."""
    return assembly(
        ["Car", "Body", "Wheel", "Hub"],
        [("Car", "Body"), ("Car", "Wheel"), ("Car", "Wheel"), ("Wheel", "Hub")],
        header=StepFileHeader(file_path="car_v1.stp", name="car_v1", author="jdoe"),
    )


@pytest.fixture
def engine_moved(assembly):
    """Engine sub-assembly moved from Frame to Body."""
    first = assembly(
        ["Car", "Frame", "Engine", "Piston", "Body"],
        [("Car", "Frame"), ("Frame", "Engine"), ("Engine", "Piston"), ("Car", "Body")],
    )
    second = assembly(
        ["Car", "Frame", "Body", "Engine", "Piston"],
        [("Car", "Frame"), ("Car", "Body"), ("Body", "Engine"), ("Engine", "Piston")],
        id_offset=40,
    )
    return first, second
