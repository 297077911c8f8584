import contextlib
import itertools

import aiohttp.test_utils
import aiohttp.web
import pytest

from arena.errors import DataSourceError, PersistenceError, SandboxError
from arena.game import GameSession


@pytest.fixture
def arenaconf(mocker):
    """Mocks :func:`arena.config.load` for a given profile.

    Usage to override the "matchmaker" profile::

        @pytest.fixture
        def myconf(arenaconf):
            arenaconf("matchmaker", matchmaker={...}, mongo={...})

        def test_something(myconf):
            ...
    """
    config_registry = {}

    def mocked_loader(profile):
        try:
            return config_registry[profile]
        except KeyError:
            raise KeyError(
                f"Application loads config profile '{profile}', which is not "
                f"configured in arenaconf fixture."
            ) from None

    def configure_func(profile, **kwargs):
        config_registry[profile] = kwargs

    config_load = mocker.patch("arena.config.load")
    config_load.side_effect = mocked_loader
    yield configure_func
    config_load.stop()


@pytest.fixture
def matchmaker_config():
    return {
        'matchmaker': {
            'parallel_games_count': 1,
            'pvp_games_count': 2,
            'wakeup_retry_count': 3,
            'wakeup_wait_time': 100,
            'trigger_interval': 60000,
            'http_timeout': 5,
        },
        'mongo': {
            'connection_string': 'mongodb://localhost:27017',
            'database': 'arena_test',
        },
        'docker': {
            'bind_address': '127.0.0.1',
            'image_template': 'arena/{name}',
            'agent_port': 8080,
        },
    }


class FakeRuntime:
    """In-memory container runtime keeping track of every call.

    `endpoints` maps an image to the (host, port) its containers answer on.
    """

    def __init__(self):
        self.endpoints = {}
        self.exposed = {}
        self.failing = set()
        self.failing_release = set()
        self.failing_remove = set()
        self.unpulled = set()
        self.created = []
        self.started = []
        self.stopped = []
        self.removed = []
        self.forced = []
        self.images = {}
        self._ids = itertools.count(1)

    @property
    def live(self):
        return [c for c in self.created if c not in self.removed]

    async def create(self, image, port, bind_address):
        if image in self.failing:
            raise SandboxError('cannot create ' + image)
        container_id = 'container{:04}'.format(next(self._ids))
        self.created.append(container_id)
        self.images[container_id] = image
        return container_id

    async def start(self, container_id):
        self.started.append(container_id)

    async def inspect(self, container_id):
        return self.endpoints[self.images[container_id]]

    async def exposed_port(self, image):
        if image in self.unpulled:
            raise SandboxError('No such image: ' + image)
        return self.exposed.get(image)

    async def stop(self, container_id):
        self.stopped.append(container_id)
        if self.images[container_id] in self.failing_release:
            raise SandboxError('cannot stop ' + container_id)

    async def remove(self, container_id, force=False):
        if self.images[container_id] in self.failing_remove:
            raise SandboxError('cannot remove ' + container_id)
        self.removed.append(container_id)
        if force:
            self.forced.append(container_id)


@pytest.fixture
def runtime():
    return FakeRuntime()


class FakeStore:
    """Document store double, with the same session API as MongoStore."""

    def __init__(self):
        self.agents = []
        self.events = []
        self.results = []
        self.reads = 0
        self.writes = 0
        self.fail_reads = False
        self.fail_writes = False

    @contextlib.asynccontextmanager
    async def connect(self):
        yield self

    async def find_agents(self):
        self.reads += 1
        if self.fail_reads:
            raise DataSourceError('store unreachable')
        return list(self.agents)

    async def find_pending_events(self):
        self.reads += 1
        if self.fail_reads:
            raise DataSourceError('store unreachable')
        return [e for e in self.events if not e['played']]

    async def insert_result(self, document):
        self.writes += 1
        if self.fail_writes:
            raise PersistenceError('cannot insert result')
        self.results.append(document)

    async def mark_played(self, event_id):
        self.writes += 1
        if self.fail_writes:
            raise PersistenceError('cannot update event')
        for event in self.events:
            if event['_id'] == event_id:
                event['played'] = True


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def no_sleep():
    """A recording replacement for asyncio.sleep."""
    sleeps = []

    async def sleep(delay):
        sleeps.append(delay)

    sleep.calls = sleeps
    return sleep


def make_agent_app(ready=True, fire_status=200):
    """Returns an aiohttp app behaving like a sandboxed agent."""
    app = aiohttp.web.Application()
    app['calls'] = []

    async def reset(request):
        body = await request.json() if request.can_read_body else None
        app['calls'].append((request.method, 'reset', body))
        if not ready:
            return aiohttp.web.json_response({}, status=503)
        return aiohttp.web.json_response({})

    async def fire(request):
        body = await request.json()
        app['calls'].append((request.method, 'fire', body))
        return aiohttp.web.json_response(
            {'shot': body.get('turn', 0)}, status=fire_status
        )

    app.router.add_get('/reset', reset)
    app.router.add_post('/reset', reset)
    app.router.add_post('/fire', fire)
    return app


@pytest.fixture
def aiohttp_unused_port():
    """Return a port that is unused on the current host.

    Provided by pytest-aiohttp before 1.0.
    """
    return aiohttp.test_utils.unused_port


@pytest.fixture
def agent_server(aiohttp_server):
    async def start(**kwargs):
        return await aiohttp_server(make_agent_app(**kwargs))

    return start


class FakeGame(GameSession):
    """Resets both players, has each fire once, the first one wins."""

    async def play(self):
        await self.player1.reset({'side': 1})
        await self.player2.reset({'side': 2})
        shot1 = await self.player1.fire({'turn': 1})
        shot2 = await self.player2.fire({'turn': 2})
        return {'winner': 1, 'shots': [shot1, shot2]}


@pytest.fixture
def fake_game():
    return FakeGame
