from enum import Enum


class AccountKind(str, Enum):
    mongodb = "MongoDB"
    parse = "Parse"
    global_document_db = "GlobalDocumentDB"


class ConsistencyLevel(str, Enum):
    eventual = "Eventual"
    session = "Session"
    bounded_staleness = "BoundedStaleness"
    strong = "Strong"
    consistent_prefix = "ConsistentPrefix"


class EnsureOutcome(str, Enum):
    exists = "exists"
    created = "created"
    failed = "failed"
    # Database create failed but was reported as complete (legacy behavior)
    unchecked_failure = "unchecked_failure"


class ResourceType(str, Enum):
    resource_group = "resource_group"
    account = "account"
    database = "database"


class Backend(str, Enum):
    azure = "azure"
    memory = "memory"
