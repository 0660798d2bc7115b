"""Idempotent provisioning of Azure Cosmos DB (MongoDB API) accounts and databases."""
