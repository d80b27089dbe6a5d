from humanpointer.refs import (
    AncestryFingerprint,
    ElementReferenceStore,
    StructuralSnapshot,
    find_best_match,
    score_candidate,
)

from conftest import ax_node

NEWS = "Breaking News: Market Rally Continues Today"


def test_role_mismatch_is_never_matched():
    target = AncestryFingerprint(
        role="button", name="Read more", parent_role="article", parent_name=NEWS,
        ancestor_content=NEWS, ancestor_role="article",
    )
    candidate = AncestryFingerprint(
        role="link", name="Read more", parent_role="article", parent_name=NEWS,
        ancestor_content=NEWS, ancestor_role="article",
    )
    assert score_candidate(target, candidate) is None
    assert find_best_match(target, [("e4", candidate)]) is None


def test_parent_role_alone_is_below_threshold():
    target = AncestryFingerprint(role="button", name="Save", parent_role="toolbar", parent_name="Top")
    candidate = AncestryFingerprint(role="button", name="Cancel", parent_role="toolbar", parent_name="Bottom")
    assert score_candidate(target, candidate) == 1
    assert find_best_match(target, [("e2", candidate)]) is None


def test_identical_ancestor_content_wins():
    target = AncestryFingerprint(role="link", name="Read more", ancestor_content=NEWS)
    same = AncestryFingerprint(role="link", name="Read more", ancestor_content=NEWS)
    other = AncestryFingerprint(role="link", name="Read more", ancestor_content="Weather: sunny all week long")
    assert score_candidate(target, same) >= 12
    assert find_best_match(target, [("e1", other), ("e7", same)]) == "e7"


def test_prefix_containment_scores_five():
    long_text = "Quarterly results beat expectations across every single region worldwide"
    target = AncestryFingerprint(role="button", name="x", parent_role="a", parent_name="b", ancestor_content=long_text)
    candidate = AncestryFingerprint(
        role="button", name="y", parent_role="c", parent_name="d",
        ancestor_content=long_text + " (updated 5 minutes ago)",
    )
    assert score_candidate(target, candidate) == 5


def test_missing_ancestor_content_scores_nothing():
    target = AncestryFingerprint(role="button", name="Go", ancestor_content=NEWS)
    candidate = AncestryFingerprint(role="button", name="Stop")
    # parent_role/parent_name absent on both sides still count as equal
    assert score_candidate(target, candidate) == 3


def test_ties_keep_first_candidate():
    target = AncestryFingerprint(role="button", name="Go", parent_role="form", parent_name="Login")
    first = AncestryFingerprint(role="button", name="Go", parent_role="form", parent_name="Login")
    second = AncestryFingerprint(role="button", name="Go", parent_role="form", parent_name="Login")
    assert find_best_match(target, [("e3", first), ("e9", second)]) == "e3"


def test_store_supersedes_previous_snapshot():
    store = ElementReferenceStore()
    fp = AncestryFingerprint(role="button", name="Buy")
    store.capture_snapshot("tab", {"e1": 11, "e2": 12}, {"e1": fp})
    assert store.resolve("tab", "e2") == 12

    store.capture_snapshot("tab", {"e1": 21}, {})
    assert store.resolve("tab", "e1") == 21
    assert store.resolve("tab", "e2") is None
    assert store.fingerprint_of("tab", "e1") is None


def test_store_sessions_are_isolated():
    store = ElementReferenceStore()
    store.capture_snapshot("a", {"e1": 1}, {})
    store.capture_snapshot("b", {"e1": 2}, {})
    assert store.resolve("a", "e1") == 1
    assert store.resolve("b", "e1") == 2

    store.clear("a")
    assert not store.has_snapshot("a")
    assert store.resolve("a", "e1") is None
    assert store.resolve("b", "e1") == 2


def test_store_candidates_keep_capture_order():
    store = ElementReferenceStore()
    fps = {f"e{i}": AncestryFingerprint(role="link", name=str(i)) for i in (3, 1, 2)}
    store.capture_snapshot("tab", {h: i for i, h in enumerate(fps)}, fps)
    assert [h for h, _ in store.candidates("tab")] == ["e3", "e1", "e2"]
    assert store.candidates("missing") == []


def _page():
    return [
        ax_node("1", "RootWebArea", "Front page", children=["2"], backend=1),
        ax_node("2", "generic", parent="1", children=["3", "6"], backend=2),
        ax_node("3", "article", NEWS, parent="2", children=["4", "5"], backend=3),
        ax_node("4", "heading", "Markets", parent="3", backend=4,
                properties=[{"name": "level", "value": {"type": "integer", "value": 2}}]),
        ax_node("5", "link", "Read more", parent="3", backend=5,
                properties=[{"name": "focusable", "value": {"type": "booleanOrUndefined", "value": True}}]),
        ax_node("6", "button", "Hidden", parent="2", backend=6, ignored=True),
    ]


def test_snapshot_build_assigns_handles_in_document_order():
    result = StructuralSnapshot.from_ax_nodes(_page()).build()
    assert result.element_count == 4
    assert result.refs == {"e1": 1, "e2": 3, "e3": 4, "e4": 5}
    lines = result.tree.splitlines()
    assert lines[0] == '- RootWebArea "Front page" [ref=e1]'
    assert lines[1] == f'  - article "{NEWS}" [ref=e2]'
    assert lines[2] == '    - heading "Markets" [ref=e3] [level=2]'
    assert lines[3] == '    - link "Read more" [ref=e4] [focusable]'


def test_snapshot_fingerprint_uses_nearest_text_ancestor():
    result = StructuralSnapshot.from_ax_nodes(_page()).build()
    fp = result.fingerprints["e4"]
    assert fp.role == "link"
    assert fp.name == "Read more"
    assert fp.parent_role == "article"
    assert fp.parent_name == NEWS
    assert fp.ancestor_content == NEWS
    assert fp.ancestor_role == "article"


def test_snapshot_nodes_without_backend_id_get_no_ref():
    nodes = [
        ax_node("1", "RootWebArea", "Page", children=["2"], backend=1),
        ax_node("2", "StaticText", "hello", parent="1"),
    ]
    result = StructuralSnapshot.from_ax_nodes(nodes).build()
    assert result.element_count == 2
    assert "e2" not in result.refs


def test_fingerprint_ancestor_walk_is_bounded():
    top_text = "A paragraph of text that is certainly long enough"
    nodes = [ax_node("0", "region", top_text, children=["1"], backend=100)]
    for i in range(1, 12):
        nodes.append(ax_node(str(i), "generic", parent=str(i - 1), children=[str(i + 1)], backend=100 + i))
    nodes.append(ax_node("12", "button", "Deep", parent="11", backend=200))
    snapshot = StructuralSnapshot.from_ax_nodes(nodes)
    fp = snapshot.fingerprint(snapshot.nodes["12"])
    assert fp.parent_role == "generic"
    assert fp.ancestor_content is None

    shallow = StructuralSnapshot.from_ax_nodes(nodes[:1] + [ax_node("12", "button", "Near", parent="0", backend=200)])
    near = shallow.fingerprint(shallow.nodes["12"])
    assert near.ancestor_content == top_text


def test_fingerprint_truncates_long_names():
    long_name = "x" * 150
    long_text = "y" * 300
    nodes = [
        ax_node("1", "main", long_text, children=["2"], backend=1),
        ax_node("2", "button", long_name, parent="1", backend=2),
    ]
    snapshot = StructuralSnapshot.from_ax_nodes(nodes)
    fp = snapshot.fingerprint(snapshot.nodes["2"])
    assert len(fp.name) == 100
    assert len(fp.parent_name) == 100
    assert len(fp.ancestor_content) == 200


def test_empty_snapshot():
    result = StructuralSnapshot.from_ax_nodes([]).build()
    assert result.tree == ""
    assert result.element_count == 0
