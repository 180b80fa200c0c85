"""Tests for the sf CLI wrapper, with subprocess.run patched out."""

import json
import subprocess

import pytest

from ferry_pkg import cli
from ferry_pkg.cli import SalesforceCLI
from ferry_pkg.exceptions import SalesforceCliError


class FakeRun:
    """Records every subprocess.run call and answers with queued responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def __call__(self, command, input=None, **kwargs):
        self.calls.append((command, input))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        returncode, stdout = response
        if not isinstance(stdout, str):
            stdout = json.dumps(stdout)
        return subprocess.CompletedProcess(command, returncode, stdout=stdout, stderr='')


@pytest.fixture
def fake_run(monkeypatch):
    def install(*responses):
        runner = FakeRun(*responses)
        monkeypatch.setattr(cli.subprocess, 'run', runner)
        return runner
    return install


def test_query_records(fake_run):
    run = fake_run((0, {'status': 0, 'result': {'records': [{'Id': '001'}], 'totalSize': 1}}))

    records = SalesforceCLI('prod').query_records('SELECT Id FROM Account')

    assert records == [{'Id': '001'}]
    command, _ = run.calls[0]
    assert command == ['sf', 'data', 'query', '--query', 'SELECT Id FROM Account',
                       '--target-org', 'prod', '--json']


def test_describe(fake_run):
    run = fake_run((0, {'status': 0, 'result': {'name': 'Account', 'fields': []}}))
    assert SalesforceCLI('prod').describe('Account') == {'name': 'Account', 'fields': []}
    assert run.calls[0][0][:5] == ['sf', 'sobject', 'describe', '--sobject', 'Account']


def test_non_zero_exit_uses_json_message(fake_run):
    fake_run((1, {'status': 1, 'message': 'No authorization information found for prod.'}))

    with pytest.raises(SalesforceCliError, match='No authorization information'):
        SalesforceCLI('prod').query_records('SELECT Id FROM Account')


def test_invalid_json_response(fake_run):
    fake_run((0, 'Warning: update available'))
    with pytest.raises(SalesforceCliError, match='Invalid JSON'):
        SalesforceCLI('prod').describe('Account')


@pytest.mark.parametrize('error, message', [
    (subprocess.TimeoutExpired(['sf'], 5), 'timed out'),
    (FileNotFoundError('sf'), 'SF CLI not found'),
])
def test_process_errors(fake_run, error, message):
    fake_run(error)
    with pytest.raises(SalesforceCliError, match=message):
        SalesforceCLI('prod').describe('Account')


def test_insert_records_posts_a_collection(fake_run):
    run = fake_run((0, [
        {'id': '001NEW', 'success': True, 'errors': []},
        {'success': False, 'errors': [{'statusCode': 'DUPLICATE_VALUE', 'message': 'duplicate value found'}]},
    ]))

    outcomes = SalesforceCLI('dev', api_version='61.0').insert_records(
        'Account', [{'Name': 'Acme'}, {'Name': 'Acme'}]
    )

    assert [o.success for o in outcomes] == [True, False]
    assert outcomes[0].id == '001NEW'
    assert outcomes[1].errors == ('DUPLICATE_VALUE: duplicate value found',)

    command, stdin = run.calls[0]
    assert command[:5] == ['sf', 'api', 'request', 'rest', '/services/data/v61.0/composite/sobjects']
    assert command[command.index('--method') + 1] == 'POST'
    assert json.loads(stdin) == {
        'allOrNone': False,
        'records': [
            {'Name': 'Acme', 'attributes': {'type': 'Account'}},
            {'Name': 'Acme', 'attributes': {'type': 'Account'}},
        ],
    }


def test_update_records_uses_patch(fake_run):
    run = fake_run((0, [{'id': '001A', 'success': True, 'errors': []}]))
    SalesforceCLI('dev').update_records('Account', [{'Id': '001A', 'ParentId': '001B'}])
    command, _ = run.calls[0]
    assert command[command.index('--method') + 1] == 'PATCH'


def test_rejected_request(fake_run):
    fake_run((0, [{'errorCode': 'INVALID_SESSION_ID', 'message': 'Session expired or invalid'}]))
    with pytest.raises(SalesforceCliError, match='Session expired'):
        SalesforceCLI('dev').insert_records('Account', [{'Name': 'Acme'}])


def test_too_many_records_in_one_call(fake_run):
    run = fake_run()
    with pytest.raises(SalesforceCliError, match='max 200'):
        SalesforceCLI('dev').insert_records('Account', [{'Name': str(i)} for i in range(201)])
    assert run.calls == []


def test_record_type_id_is_cached(fake_run):
    run = fake_run((0, {'status': 0, 'result': {'records': [{'Id': '012T'}]}}))
    sf_cli = SalesforceCLI('dev')

    assert sf_cli.get_record_type_id('Account', 'Customer') == '012T'
    assert sf_cli.get_record_type_id('Account', 'Customer') == '012T'
    assert len(run.calls) == 1


def test_org_info_failure_returns_none(fake_run):
    fake_run((1, {'status': 1, 'message': 'expired'}))
    assert SalesforceCLI('dev').get_org_info() is None
