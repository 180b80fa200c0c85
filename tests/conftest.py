"""Shared fixtures: in-memory stand-ins for the source and target orgs."""

import copy
import re

import pytest

from ferry_pkg.exceptions import SalesforceCliError
from ferry_pkg.models import InsertOutcome


def field(name, type='string', reference_to=None, createable=True, nillable=True,
          external_id=False, unique=False, relationship_name=None):
    return {
        'name': name,
        'label': name.replace('__c', '').replace('Id', ' ID').strip(),
        'type': type,
        'referenceTo': list(reference_to or []),
        'relationshipName': relationship_name,
        'createable': createable,
        'nillable': nillable,
        'externalId': external_id,
        'unique': unique,
    }


def lookup(name, *reference_to, **kwargs):
    return field(name, type='reference', reference_to=reference_to, **kwargs)


def describe(name, fields, children=()):
    return {
        'name': name,
        'fields': [field('Id', type='id', createable=False, nillable=False)] + list(fields),
        'childRelationships': list(children),
    }


STANDARD_DESCRIBES = {
    'Account': describe('Account', [
        field('Name', nillable=False),
        field('Industry', type='picklist'),
        field('Ext_Id__c', external_id=True),
        lookup('ParentId', 'Account', relationship_name='Parent'),
        lookup('Partner__c', 'Account', relationship_name='Partner__r'),
        lookup('OwnerId', 'User', nillable=False, relationship_name='Owner'),
        lookup('RecordTypeId', 'RecordType', relationship_name='RecordType'),
        lookup('CreatedById', 'User', createable=False),
        field('CreatedDate', type='datetime', createable=False),
    ], children=[
        {'childSObject': 'Contact', 'field': 'AccountId', 'relationshipName': 'Contacts'},
        {'childSObject': 'AccountHistory', 'field': 'AccountId', 'relationshipName': None},
    ]),
    'Contact': describe('Contact', [
        field('LastName', nillable=False),
        field('Email', type='email'),
        lookup('AccountId', 'Account', relationship_name='Account'),
        lookup('ReportsToId', 'Contact', relationship_name='ReportsTo'),
        lookup('OwnerId', 'User', nillable=False),
    ]),
    'Task': describe('Task', [
        field('Subject'),
        lookup('WhatId', 'Account', 'Opportunity', relationship_name='What'),
        lookup('WhoId', 'Contact', 'Lead', relationship_name='Who'),
        lookup('OwnerId', 'Group', 'User'),
    ]),
    'RecordType': describe('RecordType', [
        field('Name'),
        field('DeveloperName'),
        field('SobjectType', createable=False),
        lookup('BusinessProcessId', 'BusinessProcess'),
    ]),
}


def standard_records():
    return {
        'acc0': ('Account', {'Id': 'acc0', 'Name': 'Acme Holdings', 'ParentId': None,
                             'Partner__c': None, 'OwnerId': 'user1', 'RecordTypeId': None}),
        'acc1': ('Account', {'Id': 'acc1', 'Name': 'Acme', 'ParentId': 'acc0', 'Partner__c': None,
                             'OwnerId': 'user1', 'RecordTypeId': 'rt1', 'Ext_Id__c': 'ACME-1'}),
        'con1': ('Contact', {'Id': 'con1', 'LastName': 'Smith', 'AccountId': 'acc1',
                             'ReportsToId': None, 'OwnerId': 'user1'}),
        'con2': ('Contact', {'Id': 'con2', 'LastName': 'Jones', 'AccountId': 'acc1',
                             'ReportsToId': 'con1', 'OwnerId': 'user1'}),
        'rt1': ('RecordType', {'Id': 'rt1', 'Name': 'Customer', 'DeveloperName': 'Customer',
                               'SobjectType': 'Account', 'BusinessProcessId': 'bp1'}),
        'user1': ('User', {'Id': 'user1', 'Name': 'Admin'}),
    }


class FakeSource:
    """Source org: answers describe and Id-filtered queries from memory."""

    def __init__(self, describes=None, records=None, fail_ids=(), fail_describe=()):
        self.target_org = 'source'
        self.describes = describes if describes is not None else copy.deepcopy(STANDARD_DESCRIBES)
        self.records = records if records is not None else standard_records()
        self.fail_ids = set(fail_ids)
        self.fail_describe = set(fail_describe)
        self.describe_calls = []
        self.queries = []

    def describe(self, sobject):
        self.describe_calls.append(sobject)
        if sobject in self.fail_describe or sobject not in self.describes:
            raise SalesforceCliError(f"The requested resource does not exist: {sobject}")
        return self.describes[sobject]

    def _as_result(self, sobject, record):
        result = {'attributes': {'type': sobject, 'url': f'/sobjects/{sobject}/{record["Id"]}'}}
        result.update(copy.deepcopy(record))
        return result

    def query_records(self, query):
        self.queries.append(query)
        match = re.search(r"FROM (\w+) WHERE Id = '([^']+)'", query)
        if match:
            sobject, record_id = match.groups()
            if record_id in self.fail_ids:
                raise SalesforceCliError(f"INVALID_QUERY for {record_id}")
            found = self.records.get(record_id)
            if found and found[0] == sobject:
                return [self._as_result(sobject, found[1])]
            return []
        match = re.search(r"FROM (\w+) WHERE Id IN \('(.*)'\)", query)
        if match:
            sobject, ids = match.groups()
            return [self._as_result(sobject, self.records[rid][1])
                    for rid in ids.split("','")
                    if rid in self.records and self.records[rid][0] == sobject]
        return []

    def get_record_type_info_by_id(self, record_type_id):
        found = self.records.get(record_type_id)
        return dict(found[1]) if found and found[0] == 'RecordType' else None

    def queries_for(self, record_id):
        return [q for q in self.queries if f"'{record_id}'" in q]


class FakeTarget:
    """
    Target org: hands out sequential Ids, remembers every call.

    fail: callable(sobject, record) -> list of error strings (or None) for per-record failures
    raise_on: object types whose insert call raises as a whole
    """

    def __init__(self, name='target', fail=None, raise_on=(), existing=None, record_types=None):
        self.target_org = name
        self.fail = fail
        self.raise_on = set(raise_on)
        self.existing = existing or {}
        self.record_types = record_types or {}
        self.insert_calls = []
        self.update_calls = []
        self.created = {}
        self.queries = []
        self._counter = 0

    def insert_records(self, sobject, records):
        self.insert_calls.append((sobject, [dict(r) for r in records]))
        if sobject in self.raise_on:
            raise SalesforceCliError("INVALID_SESSION_ID: Session expired or invalid")
        outcomes = []
        for record in records:
            errors = self.fail(sobject, record) if self.fail else None
            if errors is not None:
                outcomes.append(InsertOutcome(success=False, errors=tuple(errors)))
                continue
            self._counter += 1
            new_id = f"{self.target_org}-{sobject}-{self._counter}"
            self.created[new_id] = (sobject, dict(record))
            outcomes.append(InsertOutcome(success=True, id=new_id))
        return outcomes

    def update_records(self, sobject, records):
        self.update_calls.append((sobject, [dict(r) for r in records]))
        outcomes = []
        for record in records:
            self.created[record['Id']][1].update({k: v for k, v in record.items() if k != 'Id'})
            outcomes.append(InsertOutcome(success=True, id=record['Id']))
        return outcomes

    def query_records(self, query):
        self.queries.append(query)
        match = re.search(r"FROM (\w+) WHERE (\w+) = '([^']*)'", query)
        if not match:
            return []
        sobject, field_name, value = match.groups()
        return [{'Id': rid} for rid, (obj, record) in self.existing.items()
                if obj == sobject and record.get(field_name) == value]

    def get_record_type_id(self, sobject, developer_name):
        return self.record_types.get((sobject, developer_name))

    def inserted(self, sobject):
        return [record for obj, record in self.created.values() if obj == sobject]


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def target():
    return FakeTarget()
