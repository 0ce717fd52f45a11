"""Identity and access management bounded context: API key issuance and validation."""
