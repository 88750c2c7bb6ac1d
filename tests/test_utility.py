from kasukibot.core.utility import anilist_to_discord_markdown, fuzzy_date, media_name, trim
from kasukibot.utils.embed_utils import create_embed, parse_color


def test_anilist_markup_to_markdown():
    raw = '<b>Bold</b> and <i>it</i><br>~!spoiler!~ <a href="https://anilist.co">link</a>'
    assert anilist_to_discord_markdown(raw) == "**Bold** and _it_\n||spoiler|| [link](https://anilist.co)"
    assert anilist_to_discord_markdown(None) == ""


def test_trim_keeps_spoilers_balanced():
    text = "a" * 10 + "||" + "b" * 20 + "||"
    cut = trim(text, 20)
    assert len(cut) <= 20
    assert cut.count("||") % 2 == 0
    assert trim("short", 20) == "short"


def test_media_name():
    assert media_name({"english": "Frieren", "romaji": "Sousou no Frieren"}) == "Frieren / Sousou no Frieren"
    assert media_name({"romaji": "Sousou no Frieren"}) == "Sousou no Frieren"
    assert media_name(None) == "Unknown"


def test_fuzzy_date():
    assert fuzzy_date({"year": 2023, "month": 9, "day": 29}) == "29/09/2023"
    assert fuzzy_date({"year": 2023}) == "2023"
    assert fuzzy_date({}) == "?"


def test_parse_color():
    assert parse_color("#3db4f2") == 0x3DB4F2
    assert parse_color("blue") == 0x3DB4F2
    assert parse_color(0x123456) == 0x123456
    assert parse_color("#zzz") == parse_color(None)


def test_create_embed_limits():
    fields = [{"name": f"f{i}", "value": "x" * 2000} for i in range(30)]
    embed = create_embed(description="d" * 5000, title="t" * 300, fields=fields)
    assert len(embed.description) == 4096
    assert len(embed.title) == 256
    assert len(embed.fields) == 25
    assert all(len(f.value) <= 1024 for f in embed.fields)
