from functools import lru_cache
from azure.cosmos import CosmosClient
from azure.identity import DefaultAzureCredential
from wellness.configuration.config import Config

@lru_cache(maxsize=1)
def get_database():
    """
    Create the Cosmos database client on first use.
    Uses the account key when configured, otherwise DefaultAzureCredential.
    """
    credential = Config.COSMOSDB_KEY or DefaultAzureCredential()
    client = CosmosClient(
        url=Config.COSMOSDB_ENDPOINT,
        credential=credential
    )
    return client.get_database_client(Config.COSMOSDB_DATABASE_NAME)

def get_container(container_key: str):
    """
    Dependency that provides the CosmosDB container client
    Args:
        container_key (str): Key of the container to get (availability_rules, profiles, etc.)
    Returns:
        Container client for the specified container
    """
    if container_key not in Config.COSMOSDB_CONTAINER_NAME:
        raise ValueError(f"Container {container_key} not found")
    return get_database().get_container_client(Config.COSMOSDB_CONTAINER_NAME[container_key])

def get_containers():
    """Dependency injection function providing a container lookup for the calendar store."""
    return get_container
