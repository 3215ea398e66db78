import textwrap

from tmx_reader.__main__ import main

MAP = textwrap.dedent(
    """
    <?xml version="1.0" encoding="UTF-8"?>
    <map version="1.10" orientation="orthogonal" renderorder="right-down"
         width="2" height="2" tilewidth="16" tileheight="16" infinite="0">
        <tileset firstgid="1" source="terrain.tsx"/>
        <group id="1" name="Decor">
            <layer id="2" name="Ground" width="2" height="2">
                <data encoding="csv">1,0,0,4</data>
            </layer>
        </group>
        <objectgroup id="3" name="Spawns">
            <object id="1" x="0" y="0"><point/></object>
        </objectgroup>
    </map>
    """
).strip()


def test_map_summary(tmp_path, capsys):
    path = tmp_path / "level.tmx"
    path.write_text(MAP, encoding="utf-8")

    assert main([str(path)]) == 0

    out = capsys.readouterr().out
    assert "Map: 2x2 tiles of 16x16 px (orthogonal, right-down)" in out
    assert "firstgid=1 external: terrain.tsx" in out
    assert "[group] Decor" in out
    assert "[tiles] Ground 2x2, 2 non-empty" in out
    assert "[objects] Spawns (1 objects)" in out


def test_tileset_summary(tmp_path, capsys):
    path = tmp_path / "terrain.xml"
    path.write_text(
        '<tileset name="terrain" tilewidth="16" tileheight="16" tilecount="4" columns="2">'
        '<image source="terrain.png" width="32" height="32"/></tileset>',
        encoding="utf-8",
    )

    assert main(["--tileset", str(path)]) == 0

    out = capsys.readouterr().out
    assert "Tileset: terrain (atlas terrain.png)" in out
    assert "Tiles: 4, 16x16 px, 2 columns" in out


def test_world_summary(tmp_path, capsys):
    path = tmp_path / "overworld.world"
    path.write_text('{"maps": [{"fileName": "a.tmx", "x": 0, "y": 0}]}', encoding="utf-8")

    assert main([str(path)]) == 0

    assert "a.tmx at (0, 0)" in capsys.readouterr().out


def test_parse_error_exits_with_failure(tmp_path, capsys):
    path = tmp_path / "broken.tmx"
    path.write_text('<map width="2"/>', encoding="utf-8")

    assert main([str(path)]) == 1
    assert "missing required attribute" in capsys.readouterr().err


def test_missing_file(tmp_path):
    assert main([str(tmp_path / "nope.tmx")]) == 1
