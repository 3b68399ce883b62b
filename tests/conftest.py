"""
Shared fixtures: scripted stand-ins for the LLM and the page renderer.
"""

import pytest

from data_models import RenderedPage

SAMPLE_CV = """Jane Doe
jane.doe@example.com
+1 555-123-4567

Experience
Senior Software Engineer at Acme Corp (2019-2024)
Built data pipelines in Python and Go.

Education
MSc Computer Science - University of Somewhere
"""

SAMPLE_LETTER = """Dear Hiring Manager,

I am writing to apply for the Backend Engineer position at Example Inc.

My experience building data pipelines at Acme Corp matches your requirements.

Thank you for your consideration.

Sincerely,
Jane Doe"""


class FakeLLM:
    """Returns scripted responses in order and records every prompt."""

    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.prompts = []

    async def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if not self.responses:
            raise AssertionError("FakeLLM ran out of scripted responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeRenderer:
    """Page renderer returning a fixed page or raising a fixed error."""

    navigation_timeout = 1.0
    settle_seconds = 0.0

    def __init__(self, page=None, error=None):
        self.page = page
        self.error = error
        self.urls = []

    def render(self, url):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.page


@pytest.fixture
def sample_cv_text():
    return SAMPLE_CV


@pytest.fixture
def sample_letter():
    return SAMPLE_LETTER


@pytest.fixture
def cv_file(tmp_path):
    path = tmp_path / "cv.txt"
    path.write_text(SAMPLE_CV, encoding="utf-8")
    return path


@pytest.fixture
def job_page():
    return RenderedPage(
        url="https://jobs.example.com/backend-engineer",
        title="Backend Engineer",
        text="Backend Engineer at Example Inc. " * 10,
        selector=".job-description",
    )


class FakeRedis:
    """In-memory stand-in for the redis.asyncio commands the job queue uses."""

    def __init__(self):
        self.hashes = {}
        self.lists = {}
        self.sets = {}
        self.ttls = {}
        self.closed = False

    async def ping(self):
        return True

    async def aclose(self):
        self.closed = True

    async def hset(self, key, mapping):
        self.hashes.setdefault(key, {}).update({field: str(value) for field, value in mapping.items()})
        return len(mapping)

    async def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    async def hincrby(self, key, field, amount=1):
        item = self.hashes.setdefault(key, {})
        item[field] = str(int(item.get(field, 0)) + amount)
        return int(item[field])

    async def expire(self, key, seconds):
        self.ttls[key] = seconds

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            for store in (self.hashes, self.lists, self.sets):
                if store.pop(key, None) is not None:
                    removed += 1
        return removed

    async def lpush(self, key, *values):
        items = self.lists.setdefault(key, [])
        for value in values:
            items.insert(0, value)
        return len(items)

    async def rpush(self, key, *values):
        items = self.lists.setdefault(key, [])
        items.extend(values)
        return len(items)

    async def rpop(self, key):
        items = self.lists.get(key)
        return items.pop() if items else None

    async def llen(self, key):
        return len(self.lists.get(key, []))

    async def lrange(self, key, start, end):
        items = self.lists.get(key, [])
        return items[start:] if end == -1 else items[start:end + 1]

    async def ltrim(self, key, start, end):
        if key in self.lists:
            self.lists[key] = self.lists[key][start:] if end == -1 else self.lists[key][start:end + 1]

    async def sadd(self, key, *values):
        members = self.sets.setdefault(key, set())
        added = len(set(values) - members)
        members.update(values)
        return added

    async def srem(self, key, *values):
        members = self.sets.get(key, set())
        removed = len(members & set(values))
        members.difference_update(values)
        return removed

    async def scard(self, key):
        return len(self.sets.get(key, set()))

    async def smembers(self, key):
        return list(self.sets.get(key, set()))


@pytest.fixture
def fake_redis():
    return FakeRedis()
