"""Tests for the upload executor."""
import gc

import pytest

from s3upload.core.credentials import StaticCredentialsProvider
from s3upload.core.exceptions import (
    CredentialsUnavailableError,
    InvalidResourceError,
    ResourceUnreadableError,
    ContextUnavailableError,
    TransportError,
    UnexpectedStatusError,
)
from s3upload.core.upload import (
    UploadExecutor,
    UploadRequest,
    UploadState,
    ProgressReporter,
    ImmediateDispatcher,
    ResourceResolver,
    PostResponse,
    SUFFIX_INCREMENTAL,
    SUFFIX_DIMENSIONS,
    CallableSuffixRule,
    build_key,
    build_url,
)

ENDPOINT = 'https://media-bucket.s3.amazonaws.com'


class CountingResolver(ResourceResolver):
    """Resolver that counts how many resources it was asked to read."""

    def __init__(self):
        super().__init__()
        self.calls = 0

    async def resolve(self, resource):
        self.calls += 1
        return await super().resolve(resource)


@pytest.fixture
def resolver():
    return CountingResolver()


def make_request(resources, listener, suffix_rule=SUFFIX_INCREMENTAL, acl='public-read'):
    return UploadRequest(resources=resources, suffix_rule=suffix_rule, acl=acl, listener=listener)


async def run_batch(executor, request):
    reporter = ProgressReporter(request.listener, ImmediateDispatcher())
    return await executor.run(request, reporter)


class TestSuccessfulBatch:
    """All files upload."""

    @pytest.mark.asyncio
    async def test_two_images(self, provider, resolver, transport, listener, images):
        executor = UploadExecutor(provider, resolver, transport)

        result = await run_batch(executor, make_request(images[:2], listener))

        assert listener.events == [
            ('progress', 50),
            ('progress', 100),
            ('complete', [
                f'{ENDPOINT}/uploads/abc123_0.jpg',
                f'{ENDPOINT}/uploads/abc123_1.jpg',
            ]),
        ]
        assert result.state is UploadState.COMPLETED
        assert executor.state is UploadState.COMPLETED
        assert result.urls == tuple(listener.completions[0][1])

    @pytest.mark.asyncio
    async def test_single_file_reports_100(self, provider, resolver, transport, listener, images):
        executor = UploadExecutor(provider, resolver, transport)

        await run_batch(executor, make_request(images[:1], listener))

        assert listener.progress == [100]
        assert len(listener.completions) == 1

    @pytest.mark.asyncio
    async def test_progress_non_decreasing_ending_at_100(self, provider, resolver, transport, listener, images):
        executor = UploadExecutor(provider, resolver, transport)

        await run_batch(executor, make_request(images, listener))

        assert listener.progress == [33, 66, 100]
        assert listener.events[-1][0] == 'complete'

    @pytest.mark.asyncio
    async def test_signed_post_fields(self, provider, resolver, transport, listener, images, credentials):
        executor = UploadExecutor(provider, resolver, transport)

        await run_batch(executor, make_request(images[:1], listener, acl='private'))

        endpoint, form = transport.submissions[0]
        assert endpoint == ENDPOINT
        assert form.key == 'uploads/abc123_0.jpg'
        assert form.access_key_id == credentials.access_key_id
        assert form.policy == credentials.policy
        assert form.signature == credentials.signature
        assert form.success_action_status == 201
        assert form.acl == 'private'
        assert form.content_type == 'image/jpeg'
        assert form.filename == 'first.jpg'
        assert form.data == images[0].read_bytes()

    @pytest.mark.asyncio
    async def test_dimension_suffixes(self, provider, resolver, transport, listener, images):
        executor = UploadExecutor(provider, resolver, transport)

        result = await run_batch(executor, make_request(images, listener, suffix_rule=SUFFIX_DIMENSIONS))

        assert [url.rsplit('/', 1)[1] for url in result.urls] == [
            'abc123_original.jpg', 'abc123_large.jpg', 'abc123_medium.jpg'
        ]

    @pytest.mark.asyncio
    async def test_url_is_endpoint_plus_key(self, provider, resolver, transport, listener, images, credentials):
        rule = CallableSuffixRule(lambda resource, index: f"-{index * 7}")
        executor = UploadExecutor(provider, resolver, transport)

        result = await run_batch(executor, make_request(images, listener, suffix_rule=rule))

        for index, (url, (endpoint, form)) in enumerate(zip(result.urls, transport.submissions)):
            key = build_key(credentials, rule, images[index], index, 'jpg')
            assert form.key == key
            assert url == build_url(endpoint, key)

    @pytest.mark.asyncio
    async def test_empty_batch(self, provider, resolver, transport, listener):
        executor = UploadExecutor(provider, resolver, transport)

        result = await run_batch(executor, make_request([], listener))

        assert listener.events == [('complete', [])]
        assert result.urls == ()

    @pytest.mark.asyncio
    async def test_credentials_fetched_once(self, credentials, resolver, transport, listener, images):
        calls = []

        class Provider:
            def get_credentials(self):
                calls.append(1)
                return credentials

        executor = UploadExecutor(Provider(), resolver, transport)

        await run_batch(executor, make_request(images, listener))

        assert len(calls) == 1


class TestCredentialFailures:
    """No credentials, no uploads."""

    @pytest.mark.asyncio
    async def test_no_credentials(self, resolver, transport, listener, images):
        executor = UploadExecutor(StaticCredentialsProvider(None), resolver, transport)

        result = await run_batch(executor, make_request(images, listener))

        assert len(listener.events) == 1
        _, error, index = listener.events[0]
        assert isinstance(error, CredentialsUnavailableError)
        assert index == 0
        assert resolver.calls == 0
        assert transport.submissions == []
        assert result.urls == ('', '', '')
        assert result.state is UploadState.ABORTED

    @pytest.mark.asyncio
    async def test_provider_raises(self, resolver, transport, listener, images):
        class Broken:
            def get_credentials(self):
                raise ConnectionError("backend down")

        executor = UploadExecutor(Broken(), resolver, transport)

        await run_batch(executor, make_request(images, listener))

        _, error, index = listener.failures[0]
        assert isinstance(error, CredentialsUnavailableError)
        assert isinstance(error.__cause__, ConnectionError)
        assert index == 0


class TestFailFast:
    """The first failure stops the batch."""

    @pytest.mark.asyncio
    async def test_unreadable_resource(self, provider, resolver, transport, listener, images, tmp_path):
        resources = [images[0], tmp_path / 'missing.jpg', images[1]]
        executor = UploadExecutor(provider, resolver, transport)

        result = await run_batch(executor, make_request(resources, listener))

        assert listener.progress == [33]
        assert listener.completions == []
        assert len(listener.failures) == 1
        _, error, index = listener.failures[0]
        assert isinstance(error, ResourceUnreadableError)
        assert index == 1
        assert error.index == 1
        assert len(transport.submissions) == 1
        assert result.urls[1:] == ('', '')
        assert result.failed_index == 1

    @pytest.mark.asyncio
    async def test_none_resource(self, provider, resolver, transport, listener, images):
        executor = UploadExecutor(provider, resolver, transport)

        await run_batch(executor, make_request([images[0], None, images[1]], listener))

        _, error, index = listener.failures[0]
        assert isinstance(error, InvalidResourceError)
        assert index == 1
        assert len(transport.submissions) == 1

    @pytest.mark.asyncio
    async def test_forbidden_first_upload(self, provider, resolver, listener, images, make_transport):
        transport = make_transport([PostResponse(403, '<Error><Code>AccessDenied</Code></Error>')])
        executor = UploadExecutor(provider, resolver, transport)

        result = await run_batch(executor, make_request(images[:2], listener))

        assert len(listener.events) == 1
        _, error, index = listener.events[0]
        assert isinstance(error, UnexpectedStatusError)
        assert error.status == 403
        assert 'AccessDenied' in error.body
        assert index == 0
        assert len(transport.submissions) == 1
        assert result.urls == ('', '')

    @pytest.mark.asyncio
    async def test_200_is_not_success(self, provider, resolver, listener, images, make_transport):
        transport = make_transport([200])
        executor = UploadExecutor(provider, resolver, transport)

        await run_batch(executor, make_request(images[:1], listener))

        assert isinstance(listener.failures[0][1], UnexpectedStatusError)

    @pytest.mark.asyncio
    async def test_transport_error(self, provider, resolver, listener, images, make_transport):
        transport = make_transport([201, TransportError("connection reset")])
        executor = UploadExecutor(provider, resolver, transport)

        result = await run_batch(executor, make_request(images, listener))

        assert listener.progress == [33]
        _, error, index = listener.failures[0]
        assert isinstance(error, TransportError)
        assert index == 1
        assert len(transport.submissions) == 2
        assert result.urls[0].endswith('abc123_0.jpg')
        assert executor.state is UploadState.ABORTED

    @pytest.mark.asyncio
    async def test_os_error_from_transport(self, provider, resolver, listener, images, make_transport):
        transport = make_transport([ConnectionResetError("reset")])
        executor = UploadExecutor(provider, resolver, transport)

        await run_batch(executor, make_request(images[:1], listener))

        _, error, index = listener.failures[0]
        assert isinstance(error, TransportError)
        assert isinstance(error.__cause__, ConnectionResetError)
        assert index == 0


class TestContextAndCancellation:
    """Host context loss and cooperative cancellation."""

    @pytest.mark.asyncio
    async def test_released_resolver(self, provider, transport, listener, images):
        resolver = ResourceResolver()
        executor = UploadExecutor(provider, resolver, transport)
        del resolver
        gc.collect()

        await run_batch(executor, make_request(images, listener))

        _, error, index = listener.failures[0]
        assert isinstance(error, ContextUnavailableError)
        assert isinstance(error, ResourceUnreadableError)
        assert index == 0
        assert transport.submissions == []

    @pytest.mark.asyncio
    async def test_cancel_before_run(self, provider, resolver, transport, listener, images):
        executor = UploadExecutor(provider, resolver, transport)
        executor.cancel()

        result = await run_batch(executor, make_request(images, listener))

        assert result.state is UploadState.CANCELLED
        assert listener.events == []
        assert resolver.calls == 0

    @pytest.mark.asyncio
    async def test_in_flight_result_discarded(self, provider, resolver, listener, images):
        class CancellingTransport:
            def __init__(self):
                self.executor = None
                self.submissions = 0

            async def submit(self, endpoint, form):
                self.submissions += 1
                self.executor.cancel()
                return PostResponse(201)

        transport = CancellingTransport()
        executor = UploadExecutor(provider, resolver, transport)
        transport.executor = executor

        result = await run_batch(executor, make_request(images, listener))

        assert result.state is UploadState.CANCELLED
        assert result.urls == ('', '', '')
        assert transport.submissions == 1
        assert listener.events == []

    @pytest.mark.asyncio
    async def test_in_flight_failure_discarded(self, provider, resolver, listener, images):
        class CancelThenFail:
            def __init__(self):
                self.executor = None

            async def submit(self, endpoint, form):
                self.executor.cancel()
                raise TransportError("connection reset")

        transport = CancelThenFail()
        executor = UploadExecutor(provider, resolver, transport)
        transport.executor = executor

        result = await run_batch(executor, make_request(images, listener))

        assert result.state is UploadState.CANCELLED
        assert executor.state is UploadState.CANCELLED
        assert result.error is None
        assert listener.events == []

    @pytest.mark.asyncio
    async def test_runs_once(self, provider, resolver, transport, listener, images):
        executor = UploadExecutor(provider, resolver, transport)
        await run_batch(executor, make_request(images[:1], listener))

        with pytest.raises(RuntimeError):
            await run_batch(executor, make_request(images[:1], listener))


class TestTransportLifecycle:
    """Transports built per batch are closed with it."""

    @pytest.mark.asyncio
    async def test_factory_transport_closed(self, provider, resolver, listener, images, make_transport):
        built = []

        def factory(config):
            transport = make_transport()
            built.append((config, transport))
            return transport

        executor = UploadExecutor(provider, resolver, transport_factory=factory)

        await run_batch(executor, make_request(images[:2], listener))

        assert len(built) == 1
        config, transport = built[0]
        assert config.success_status == 201
        assert len(transport.submissions) == 2
        assert transport.closed == 1

    @pytest.mark.asyncio
    async def test_factory_transport_closed_on_failure(self, provider, resolver, listener, images, make_transport):
        transport = make_transport([403])
        executor = UploadExecutor(provider, resolver, transport_factory=lambda config: transport)

        await run_batch(executor, make_request(images, listener))

        assert transport.closed == 1

    @pytest.mark.asyncio
    async def test_injected_transport_left_open(self, provider, resolver, transport, listener, images):
        executor = UploadExecutor(provider, resolver, transport)

        await run_batch(executor, make_request(images[:1], listener))

        assert transport.closed == 0

    @pytest.mark.asyncio
    async def test_urls_buffer_tracks_progress(self, provider, resolver, listener, images, make_transport):
        executor = UploadExecutor(provider, resolver, make_transport([201, 500]))
        assert executor.urls == ()

        await run_batch(executor, make_request(images, listener))

        assert executor.urls[0] == f'{ENDPOINT}/uploads/abc123_0.jpg'
        assert executor.urls[1:] == ('', '')
