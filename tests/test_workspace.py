from bloomsite.agent.content import GenerationResult
from bloomsite.agent.history import DisplayHistory
from bloomsite.workspace import Workspace, build_file_tree


def test_fresh_result_replaces_files():
    ws = Workspace(files={"old.js": "x"}, active_file="old.js")
    ws.apply_result("Build", GenerationResult("New app", {"app/page.js": "p", "app/layout.js": "l"}))
    assert ws.files == {"app/page.js": "p", "app/layout.js": "l"}
    assert ws.active_file == "app/page.js"
    assert ws.messages == [
        {"role": "user", "content": "Build"},
        {"role": "assistant", "content": "New app"},
    ]


def test_update_merges_returned_keys():
    ws = Workspace(files={"A": "a", "B": "b"}, active_file="A")
    ws.apply_result("Change B", GenerationResult("Changed", {"B": "b2"}, is_update=True))
    assert ws.files == {"A": "a", "B": "b2"}
    assert ws.active_file == "A"


def test_missing_active_file_switches_to_first_returned():
    ws = Workspace(files={"A": "a"}, active_file="gone.js")
    ws.apply_result("p", GenerationResult("d", {"C": "c", "D": "d"}, is_update=True))
    assert ws.active_file == "C"


def test_empty_result_falls_back_to_default_path():
    ws = Workspace(files={"A": "a"}, active_file="A")
    ws.apply_result("p", GenerationResult("Nothing", {}))
    assert ws.files == {}
    assert ws.active_file == "app/page.js"


def test_error_leaves_files_untouched():
    ws = Workspace(files={"A": "a"}, active_file="A")
    ws.apply_response("p", {"error": "Generation failed", "details": "quota"})
    assert ws.files == {"A": "a"}
    assert ws.messages[-1] == {"role": "assistant", "content": "Error: Generation failed"}


def test_apply_response_success_reads_update_flag():
    ws = Workspace(files={"A": "a"}, active_file="A")
    ws.apply_response(
        "p",
        {"success": True, "data": {"files": {"B": "b"}, "description": "d", "isUpdate": True}},
    )
    assert ws.files == {"A": "a", "B": "b"}


def test_editor_events():
    ws = Workspace(files={"A": "a", "B": "b"}, active_file="A")
    ws.on_file_change("A", "edited")
    assert ws.files["A"] == "edited"
    assert ws.on_file_select("B") is True
    assert ws.active_file == "B"
    assert ws.on_file_select("missing") is False
    assert ws.active_file == "B"


def test_from_history():
    history = DisplayHistory(
        messages=[{"role": "user", "content": "Build"}, {"role": "assistant", "content": "Done"}],
        files={"app/page.js": "p"},
    )
    ws = Workspace.from_history(history)
    assert ws.files == {"app/page.js": "p"}
    assert ws.active_file == "app/page.js"
    assert len(ws.messages) == 2
    assert Workspace.from_history(DisplayHistory()).files == {}


def test_file_tree_folders_first_then_alphabetical():
    tree = build_file_tree(
        {
            "package.json": "",
            "app/page.js": "",
            "components/TodoList.jsx": "",
            "app/layout.js": "",
            "app/api/route.js": "",
            "README.md": "",
        }
    )
    assert [(n["name"], n["type"]) for n in tree] == [
        ("app", "folder"),
        ("components", "folder"),
        ("README.md", "file"),
        ("package.json", "file"),
    ]
    app = tree[0]
    assert [n["name"] for n in app["children"]] == ["api", "layout.js", "page.js"]
    assert app["children"][0]["children"][0]["path"] == "app/api/route.js"
