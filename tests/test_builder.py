from step_diff.config import Config
from step_diff.hlr import HighLevelRepresentationBuilder, build_tree
from step_diff.models import AnomalyKind, Part, Relation


SR = "Shape_Representation"


def check_tree_ids(tree):
    """local ids are 1..N in order and every parent comes earlier."""
    assert [n.local_id for n in tree] == list(range(1, len(tree) + 1))
    seen = set()
    for node in tree:
        assert node.parent_local_id == 0 or node.parent_local_id in seen
        seen.add(node.local_id)


def test_single_part_is_one_root():
    tree = build_tree([Part(1, "PD", "Spider", SR)], [])
    assert len(tree) == 1
    node = tree[0]
    assert (node.local_id, node.parent_local_id) == (1, 0)
    assert node.is_root
    assert node.signature == ("Spider:Shape_Representation",)
    assert node.instance_path == "Spider"
    assert tree.anomalies == []


def test_empty_input_builds_empty_tree():
    tree = build_tree([], [])
    assert len(tree) == 0
    assert tree.roots() == []


def test_preorder_with_reused_subassembly(car):
    tree = build_tree(car.parts, car.relations)
    check_tree_ids(tree)

    assert [n.name for n in tree] == ["Car", "Body", "Wheel", "Hub", "Wheel", "Hub"]
    assert [n.parent_local_id for n in tree] == [0, 1, 1, 3, 1, 5]
    assert [n.depth for n in tree] == [0, 1, 1, 2, 1, 2]

    sigs = [n.signature_text() for n in tree]
    assert sigs[2] == "Car:Shape_Representation/Wheel:Shape_Representation"
    assert sigs[4] == "Car:Shape_Representation/Wheel:Shape_Representation[2]"
    assert sigs[5] == (
        "Car:Shape_Representation/Wheel:Shape_Representation[2]/Hub:Shape_Representation"
    )
    assert len(set(sigs)) == len(sigs)


def test_own_key_has_no_occurrence_counter(car):
    tree = build_tree(car.parts, car.relations)
    second_wheel = tree[4]
    assert second_wheel.own_key == "Wheel:Shape_Representation"
    assert second_wheel.segment == "Wheel:Shape_Representation[2]"


def test_instance_names_and_paths(car):
    tree = build_tree(car.parts, car.relations)
    assert tree[0].instance_name == "Car"
    assert tree[2].instance_name == "Wheel (Wheel2:1)"
    assert tree[3].instance_path == "Car.Wheel (Wheel2:1).Hub (Hub4:1)"


def test_root_assembly_name_prefixes_paths(car):
    tree = build_tree(car.parts, car.relations, config=Config(root_assembly_name="step_assembly"))
    assert tree[0].instance_path == "step_assembly.Car"
    assert tree[1].instance_path == "step_assembly.Car.Body (Body1:1)"


def test_signatures_do_not_depend_on_file_ids(assembly):
    names = ["Car", "Body", "Wheel"]
    edges = [("Car", "Body"), ("Car", "Wheel")]
    a = assembly(names, edges)
    b = assembly(names, edges, id_offset=500)
    tree_a = build_tree(a.parts, a.relations)
    tree_b = build_tree(b.parts, b.relations)
    assert [n.signature for n in tree_a] == [n.signature for n in tree_b]
    assert [n.step_id for n in tree_a] != [n.step_id for n in tree_b]


def test_multiple_roots_keep_file_order_and_same_named_roots_are_counted():
    parts = [Part(1, "PD", "Bolt", SR), Part(2, "PD", "Nut", SR), Part(3, "PD", "Bolt", SR)]
    tree = build_tree(parts, [])
    assert [n.name for n in tree] == ["Bolt", "Nut", "Bolt"]
    assert all(n.is_root for n in tree)
    assert tree[2].signature == ("Bolt:Shape_Representation[2]",)


def test_dangling_parent_is_dropped_and_child_stays_root():
    parts = [Part(1, "PD", "Spider", SR)]
    relations = [Relation("Spider1:1", parent_part_id=2, child_part_id=1, raw_id=211)]
    tree = build_tree(parts, relations)
    assert [n.name for n in tree] == ["Spider"]
    assert tree[0].is_root
    assert [a.kind for a in tree.anomalies] == [AnomalyKind.DANGLING_PARENT]
    assert tree.anomalies[0].relation_raw_id == 211


def test_dangling_child_is_dropped():
    parts = [Part(1, "PD", "Car", SR)]
    relations = [Relation("Ghost:1", parent_part_id=1, child_part_id=99, raw_id=5)]
    tree = build_tree(parts, relations)
    assert len(tree) == 1
    assert [a.kind for a in tree.anomalies] == [AnomalyKind.DANGLING_CHILD]
    assert tree.anomalies[0].part_id == 99


def test_duplicate_part_id_keeps_first_definition():
    parts = [Part(1, "PD", "Spider", SR), Part(1, "PD", "Impostor", SR)]
    tree = build_tree(parts, [])
    assert [n.name for n in tree] == ["Spider"]
    assert [a.kind for a in tree.anomalies] == [AnomalyKind.DUPLICATE_PART]


def test_cycle_below_a_root_is_truncated():
    parts = [Part(1, "PD", "Root", SR), Part(2, "PD", "A", SR), Part(3, "PD", "B", SR)]
    relations = [
        Relation("A:1", 1, 2, raw_id=10),
        Relation("B:1", 2, 3, raw_id=11),
        Relation("A:2", 3, 2, raw_id=12),
    ]
    tree = build_tree(parts, relations)
    check_tree_ids(tree)
    assert [n.name for n in tree] == ["Root", "A", "B"]
    assert [a.kind for a in tree.anomalies] == [AnomalyKind.CYCLE]
    assert tree.anomalies[0].relation_raw_id == 12


def test_self_reference_is_truncated():
    parts = [Part(1, "PD", "Root", SR), Part(2, "PD", "Loop", SR)]
    relations = [Relation("Loop:1", 1, 2), Relation("Loop:2", 2, 2)]
    tree = build_tree(parts, relations)
    assert [n.name for n in tree] == ["Root", "Loop"]
    assert [a.kind for a in tree.anomalies] == [AnomalyKind.CYCLE]


def test_parts_only_reachable_through_a_cycle_are_promoted():
    parts = [Part(1, "PD", "A", SR), Part(2, "PD", "B", SR)]
    relations = [Relation("B:1", 1, 2), Relation("A:1", 2, 1)]
    tree = build_tree(parts, relations)
    check_tree_ids(tree)
    assert [n.name for n in tree] == ["A", "B"]
    assert tree[0].is_root
    assert tree[1].parent_local_id == 1
    kinds = [a.kind for a in tree.anomalies]
    assert AnomalyKind.UNREACHABLE in kinds
    assert AnomalyKind.CYCLE in kinds


def test_builder_keeps_last_anomalies_and_rebuilds_from_scratch():
    builder = HighLevelRepresentationBuilder()
    builder.build([Part(1, "PD", "A", SR), Part(1, "PD", "A", SR)], [])
    assert len(builder.last_anomalies) == 1

    tree = builder.build([Part(1, "PD", "A", SR)], [])
    assert builder.last_anomalies == []
    assert tree[0].local_id == 1


def test_build_from_none_is_empty():
    assert len(HighLevelRepresentationBuilder().build_from_data(None)) == 0


def test_tree_lookups(car):
    tree = build_tree(car.parts, car.relations)
    assert [n.name for n in tree.roots()] == ["Car"]
    assert [n.name for n in tree.children_of(1)] == ["Body", "Wheel", "Wheel"]
    found = tree.find_by_signature(["Car:Shape_Representation", "Body:Shape_Representation"])
    assert found is tree[1]
    assert tree.find_by_signature(("Nope",)) is None
