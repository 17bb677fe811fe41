"""Tests for the JSON-RPC server."""

import io
import json

import pytest

from perfsteps_serve.server import PerfStepsServe


def frame(request):
    content = json.dumps(request).encode('utf-8')
    return f"Content-Length: {len(content)}\r\n\r\n".encode('utf-8') + content


def read_frames(data: bytes):
    responses = []
    while data:
        header, _, rest = data.partition(b"\r\n\r\n")
        length = int(header.decode('utf-8').split(':')[1].strip())
        responses.append(json.loads(rest[:length].decode('utf-8')))
        data = rest[length:]
    return responses


@pytest.fixture
def server(step_registry, test_context, logger_provider):
    return PerfStepsServe(
        step_registry=step_registry,
        test_context=test_context,
        logger_provider=logger_provider
    )


async def call(server, method, params=None, request_id=1):
    request = {'jsonrpc': '2.0', 'method': method, 'params': params, 'id': request_id}
    return json.loads(await server.handle_request(json.dumps(request)))


@pytest.mark.asyncio
async def test_health(server):
    response = await call(server, 'health')

    assert response == {'jsonrpc': '2.0', 'id': 1, 'result': True}


@pytest.mark.asyncio
async def test_initialize(server, test_context):
    response = await call(server, 'initialize', [{
        'hostPid': 12345,
        'featureId': 67,
        'role': 'browser',
        'platform': 'python',
        'scenario': 'Login is fast',
    }])

    assert response['result'] is True
    assert test_context.scenario == 'Login is fast'
    assert test_context.test_run_id == '12345_67'
    assert test_context.get_data('harmony_host_pid') == 12345


@pytest.mark.asyncio
async def test_discover(server):
    response = await call(server, 'discover', {})

    patterns = {(s['type'], s['pattern']) for s in response['result']['steps']}
    assert ('when', r'I start measuring "(?P<name>[^"]+)"') in patterns
    assert ('when', r'I stop measuring "(?P<name>[^"]+)"') in patterns
    assert len(patterns) == 3


@pytest.mark.asyncio
async def test_execute_steps(server):
    steps = [
        ('When', 'I start measuring "phase1"'),
        ('When', 'I stop measuring "phase1"'),
        ('Then', '"phase1" should have taken less than 10000 milliseconds'),
    ]
    for request_id, (step_type, step) in enumerate(steps, start=1):
        response = await call(server, 'executeStep', {'stepType': step_type, 'step': step}, request_id)
        assert response['result']['success'] is True, response

    result = response['result']
    assert result['error'] is None
    assert result['data'] == {'measure': 'phase1', 'duration': 250.0}
    assert any("phase1" in log['message'] for log in result['logs'])


@pytest.mark.asyncio
async def test_execute_step_reports_failure_verbatim(server):
    response = await call(server, 'executeStep', [{'stepType': 'Then',
                                                  'step': '"ghost" should have taken less than 1 seconds'}])

    result = response['result']
    assert result['success'] is False
    assert result['error'] == "'ghost' performance measure does not exist."
    assert any(log['level'] == 'ERROR' for log in result['logs'])


@pytest.mark.asyncio
async def test_execute_step_accepts_type_and_text_aliases(server):
    response = await call(server, 'executeStep', {'type': 'when', 'text': 'I start measuring "x"'})

    assert response['result']['success'] is True


@pytest.mark.asyncio
async def test_unknown_method_is_an_error(server):
    response = await call(server, 'bogus')

    assert response['error']['code'] == -32603
    assert 'Unknown method: bogus' in response['error']['message']


@pytest.mark.asyncio
async def test_notifications_get_no_response(server):
    request = json.dumps({'jsonrpc': '2.0', 'method': 'health'})

    assert await server.handle_request(request) is None


@pytest.mark.asyncio
async def test_cleanup_discards_measures(server, test_context):
    await call(server, 'executeStep', {'stepType': 'When', 'step': 'I start measuring "x"'})
    assert "x" in test_context.measures

    await call(server, 'cleanup', {})

    assert len(test_context.measures) == 0


@pytest.mark.asyncio
async def test_run_over_framed_streams(step_registry, test_context, logger_provider):
    stdin = io.BytesIO(
        frame({'jsonrpc': '2.0', 'method': 'health', 'params': {}, 'id': 1})
        + frame({'jsonrpc': '2.0', 'method': 'executeStep',
                 'params': {'stepType': 'When', 'step': 'I start measuring "x"'}, 'id': 2})
        + frame({'jsonrpc': '2.0', 'method': 'shutdown', 'params': {}})
        + frame({'jsonrpc': '2.0', 'method': 'health', 'params': {}, 'id': 3})
    )
    stdout = io.BytesIO()
    server = PerfStepsServe(step_registry, test_context, logger_provider, stdin=stdin, stdout=stdout)

    await server.run()

    responses = read_frames(stdout.getvalue())
    assert [r['id'] for r in responses] == [1, 2]
    assert responses[1]['result']['success'] is True
    assert server.running is False


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_frame", [
    b"Content-Length: abc\r\n\r\n",
    b"Content-Length: 2\xff\xfe\r\n\r\n",
    b"X-Other: 1\r\n\r\n",
])
async def test_bad_frame_does_not_stop_the_server(step_registry, test_context, logger_provider, bad_frame):
    stdin = io.BytesIO(
        bad_frame
        + frame({'jsonrpc': '2.0', 'method': 'health', 'params': {}, 'id': 7})
    )
    stdout = io.BytesIO()
    server = PerfStepsServe(step_registry, test_context, logger_provider, stdin=stdin, stdout=stdout)

    await server.run()

    assert read_frames(stdout.getvalue()) == [{'jsonrpc': '2.0', 'id': 7, 'result': True}]
    assert any(log.level == 'ERROR' and 'Error in read loop' in log.message
               for log in logger_provider.get_all_logs())
