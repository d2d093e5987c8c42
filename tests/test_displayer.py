"""Displayer tests: tree data and html rendering."""

import sycalc
from sycalc import Displayer, lex, parse


def test_tree_data():
    tree = parse(lex("1 + 2 * 3"))
    assert Displayer(tree).visit(tree) == {
        "name": "+",
        "children": [
            {"name": "1"},
            {"name": "*", "children": [{"name": "2"}, {"name": "3"}]},
        ],
    }


def test_single_number():
    tree = parse(lex("-4"))
    assert Displayer(tree).visit(tree) == {"name": "-4"}


def test_render(tmp_path):
    path = tmp_path / "Tree.html"
    tree = parse(lex("( 1 + 2 ) ^ 3"))
    assert Displayer(tree).display(str(path)) == str(path)
    content = path.read_text()
    assert "<title>Tree</title>" in content
    assert "assets.pyecharts.org" in content


def test_render_local_echarts(tmp_path, monkeypatch):
    monkeypatch.setattr(sycalc, "LOCAL_ECHARTS", True)
    path = tmp_path / "Tree.html"
    tree = parse(lex("( 1 + 2 ) ^ 3"))
    assert Displayer(tree).display(str(path)) == str(path)
    content = path.read_text()
    assert "<title>Tree</title>" in content
    assert 'src="echarts.min.js"' in content
