import pytest
from aiohttp import test_utils, web

from kasukibot.core.errors import DecodeError, WebRequestError
from kasukibot.core.http import HttpClient, decode_json


async def ok(request):
    return web.json_response({"data": {"id": 1}})


async def not_found(request):
    return web.json_response({"errors": [{"message": "Not Found."}]}, status=404)


async def broken_json(request):
    return web.Response(text="<html>maintenance</html>", content_type="text/html")


async def cover(request):
    return web.Response(body=b"\x89PNG", content_type="image/png")


@pytest.fixture
async def server():
    app = web.Application()
    app.router.add_get("/ok", ok)
    app.router.add_post("/ok", ok)
    app.router.add_get("/missing", not_found)
    app.router.add_get("/maintenance", broken_json)
    app.router.add_get("/cover.png", cover)
    async with test_utils.TestServer(app) as srv:
        yield srv


@pytest.fixture
async def http():
    client = HttpClient()
    yield client
    await client.close()


async def test_json_round_trip(server, http):
    assert await http.get_json(str(server.make_url("/ok"))) == {"data": {"id": 1}}
    assert await http.post_json(str(server.make_url("/ok")), {"query": "{}"}) == {"data": {"id": 1}}


async def test_error_status_is_a_web_request_error(server, http):
    with pytest.raises(WebRequestError, match="404"):
        await http.get_json(str(server.make_url("/missing")))
    with pytest.raises(WebRequestError):
        await http.get_bytes(str(server.make_url("/missing")))


async def test_non_json_body_is_a_decode_error(server, http):
    with pytest.raises(DecodeError):
        await http.get_json(str(server.make_url("/maintenance")))


async def test_get_bytes(server, http):
    assert await http.get_bytes(str(server.make_url("/cover.png"))) == b"\x89PNG"


async def test_unreachable_host_is_a_web_request_error(http):
    server = test_utils.TestServer(web.Application())
    await server.start_server()
    url = str(server.make_url("/gone"))
    await server.close()

    with pytest.raises(WebRequestError):
        await http.get_json(url)


def test_decode_json_shapes():
    assert decode_json('{"a": 1}') == {"a": 1}
    with pytest.raises(DecodeError):
        decode_json("not json")
    with pytest.raises(DecodeError):
        decode_json("[1, 2]")
