"""Pytest fixtures for cfstream tests."""
import asyncio
import base64
import threading
import uuid

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from cfstream.core.api import APIConfig, UploadConfig

ACCOUNT_ID = 'acct123'
API_TOKEN = 'test-token'


def _decode_metadata(header):
    """Parse a TUS Upload-Metadata header into a dict."""
    result = {}
    for item in filter(None, (header or '').split(',')):
        key, _, value = item.strip().partition(' ')
        result[key] = base64.b64decode(value).decode('utf-8') if value else None
    return result


class FakeStreamService:
    """
    In-process stand-in for the video service.

    Records every request so tests can assert on wire behaviour. Flags
    switch individual endpoints into failure modes.
    """

    def __init__(self):
        self.videos = {}
        self.requests = []
        self.received = {}
        self.patches = []
        self.multipart_uploads = {}
        self.omit_location = False
        self.location = None
        self.polls_until_ready = None
        self.fail_patch_number = None
        self.fail_status = 500
        self.direct_upload_status = 200
        self.direct_upload_body = ''

        self.app = web.Application()
        prefix = f'/client/v4/accounts/{ACCOUNT_ID}/stream'
        self.app.router.add_post(prefix, self.open_session)
        self.app.router.add_get(prefix, self.list_videos)
        self.app.router.add_post(f'{prefix}/direct_upload', self.create_direct_upload)
        self.app.router.add_post(f'{prefix}/copy', self.copy_from_url)
        self.app.router.add_get(prefix + '/{uid}', self.get_video)
        self.app.router.add_post(prefix + '/{uid}', self.update_video)
        self.app.router.add_delete(prefix + '/{uid}', self.delete_video)
        self.app.router.add_patch('/tus/{uid}', self.patch_chunk)
        self.app.router.add_post('/direct/{uid}', self.direct_upload)

        self.base_url = ''

    def add_video(self, uid, name=None, state='queued', ready=False, **extra):
        record = {
            'uid': uid,
            'status': {'state': state},
            'readyToStream': ready,
            'meta': {'name': name} if name else {},
            'created': '2024-01-15T10:30:00Z',
        }
        record.update(extra)
        self.videos[uid] = record
        return record

    def _record(self, request):
        self.requests.append((request.method, request.path, dict(request.headers)))

    @staticmethod
    def envelope(result):
        return web.json_response({'success': True, 'errors': [], 'messages': [], 'result': result})

    async def open_session(self, request):
        self._record(request)
        if request.headers.get('Tus-Resumable') != '1.0.0':
            return web.Response(status=412)
        uid = uuid.uuid4().hex
        meta = _decode_metadata(request.headers.get('Upload-Metadata'))
        self.add_video(uid, name=meta.get('name'))
        self.videos[uid]['_length'] = int(request.headers['Upload-Length'])
        self.videos[uid]['_metadata'] = meta
        self.received[uid] = bytearray()
        location = self.location or f'/tus/{uid}?tusv2=true'
        headers = {} if self.omit_location else {'Location': location}
        return web.Response(status=201, headers=headers)

    async def patch_chunk(self, request):
        self._record(request)
        uid = request.match_info['uid']
        data = await request.read()
        self.patches.append({
            'uid': uid,
            'offset': int(request.headers['Upload-Offset']),
            'length': len(data),
            'content_type': request.headers.get('Content-Type'),
        })
        if self.fail_patch_number == len(self.patches):
            return web.Response(status=self.fail_status, text='chunk rejected')
        if uid not in self.received:
            return web.Response(status=404)
        if int(request.headers['Upload-Offset']) != len(self.received[uid]):
            return web.Response(status=409)
        self.received[uid].extend(data)
        return web.Response(status=204, headers={'Upload-Offset': str(len(self.received[uid]))})

    async def create_direct_upload(self, request):
        self._record(request)
        body = await request.json()
        uid = uuid.uuid4().hex
        self.add_video(uid, name=(body.get('meta') or {}).get('name'))
        self.videos[uid]['_request'] = body
        origin = str(request.url.origin())
        return self.envelope({'uid': uid, 'uploadURL': f'{origin}/direct/{uid}'})

    async def direct_upload(self, request):
        self._record(request)
        uid = request.match_info['uid']
        reader = await request.multipart()
        part = await reader.next()
        data = await part.read()
        self.multipart_uploads[uid] = {
            'field': part.name,
            'filename': part.filename,
            'content_type': part.headers.get('Content-Type'),
            'data': bytes(data),
            'has_auth': 'Authorization' in request.headers,
        }
        return web.Response(status=self.direct_upload_status, text=self.direct_upload_body)

    async def copy_from_url(self, request):
        self._record(request)
        body = await request.json()
        uid = uuid.uuid4().hex
        record = self.add_video(uid, name=(body.get('meta') or {}).get('name'), state='downloading')
        record['_request'] = body
        return self.envelope(record)

    async def get_video(self, request):
        self._record(request)
        uid = request.match_info['uid']
        if uid not in self.videos:
            return web.json_response(
                {'success': False, 'errors': [{'code': 10003, 'message': 'Not Found'}], 'result': None},
                status=404
            )
        if self.polls_until_ready is not None:
            self.polls_until_ready -= 1
            if self.polls_until_ready <= 0:
                self.videos[uid].update({'status': {'state': 'ready'}, 'readyToStream': True})
        return self.envelope(self.videos[uid])

    async def list_videos(self, request):
        self._record(request)
        videos = list(self.videos.values())
        search = request.query.get('search')
        if search:
            videos = [v for v in videos if search in (v['meta'].get('name') or '')]
        return self.envelope(videos)

    async def update_video(self, request):
        self._record(request)
        uid = request.match_info['uid']
        if uid not in self.videos:
            return web.Response(status=404, text='not found')
        body = await request.json()
        if 'meta' in body:
            self.videos[uid]['meta'] = body['meta']
        if 'requireSignedURLs' in body:
            self.videos[uid]['requireSignedURLs'] = body['requireSignedURLs']
        return self.envelope(self.videos[uid])

    async def delete_video(self, request):
        self._record(request)
        uid = request.match_info['uid']
        if self.videos.pop(uid, None) is None:
            return web.Response(status=404, text='not found')
        return web.Response(status=200)


@pytest_asyncio.fixture
async def fake_service():
    """Runs the fake service on a local port."""
    service = FakeStreamService()
    server = TestServer(service.app)
    await server.start_server()
    service.base_url = str(server.make_url('/client/v4/'))
    yield service
    await server.close()


@pytest.fixture
def live_service():
    """
    Runs the fake service on its own loop in a background thread.

    For code that calls asyncio.run itself, such as the CLI commands.
    """
    service = FakeStreamService()
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()

    runner = web.AppRunner(service.app)
    asyncio.run_coroutine_threadsafe(runner.setup(), loop).result()
    site = web.TCPSite(runner, '127.0.0.1', 0)
    asyncio.run_coroutine_threadsafe(site.start(), loop).result()
    host, port = runner.addresses[0][:2]
    service.base_url = f'http://{host}:{port}/client/v4/'

    yield service

    asyncio.run_coroutine_threadsafe(runner.cleanup(), loop).result()
    loop.call_soon_threadsafe(loop.stop)
    thread.join()
    loop.close()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep the user's config file and CFSTREAM_* variables out of tests."""
    monkeypatch.setenv('XDG_CONFIG_HOME', str(tmp_path / 'xdg'))
    for name in ('CFSTREAM_CONFIG', 'CFSTREAM_ACCOUNT_ID', 'CFSTREAM_API_TOKEN',
                 'CFSTREAM_API_URL', 'CFSTREAM_OUTPUT', 'CFSTREAM_DEFAULT_OUTPUT'):
        monkeypatch.delenv(name, raising=False)
    return tmp_path / 'xdg'


@pytest.fixture
def upload_config():
    """Scaled-down sizes: threshold 64 bytes, chunks of 16 bytes."""
    return UploadConfig(
        resumable_threshold=64,
        chunk_size=16,
        multipart_buffer_size=8,
        progress_queue_size=100,
    )


@pytest.fixture
def api_config(fake_service, upload_config):
    """API configuration pointing at the fake service."""
    return APIConfig(
        account_id=ACCOUNT_ID,
        api_token=API_TOKEN,
        base_url=fake_service.base_url,
        upload=upload_config,
    )


@pytest.fixture
def make_file(tmp_path):
    """Factory writing a file of ``size`` bytes with a repeating pattern."""
    def _make(size, name='clip.mp4'):
        path = tmp_path / name
        path.write_bytes(bytes(i % 251 for i in range(size)))
        return path
    return _make
