import os
from dotenv import load_dotenv
from wellness.models.mod_team import TeamRole

# Load environment variables from .env file
load_dotenv()

class Config:
    # Azure CosmosDB Configuration
    COSMOSDB_ENDPOINT = os.getenv("COSMOS_DB_ENDPOINT")
    COSMOSDB_KEY = os.getenv("COSMOS_DB_KEY")
    COSMOSDB_DATABASE_NAME = os.getenv("COSMOS_DB_DATABASE")
    COSMOSDB_CONTAINER_NAME = {
        "session_templates": os.getenv("COSMOS_CONTAINERS_SESSION_TEMPLATES", "session_templates"),
        "availability_rules": os.getenv("COSMOS_CONTAINERS_AVAILABILITY_RULES", "availability_rules"),
        "availability_exceptions": os.getenv("COSMOS_CONTAINERS_AVAILABILITY_EXCEPTIONS", "availability_exceptions"),
        "availability_blocked_dates": os.getenv("COSMOS_CONTAINERS_BLOCKED_DATES", "availability_blocked_dates"),
        "profiles": os.getenv("COSMOS_CONTAINERS_PROFILES", "profiles")
    }

    # JWT Configuration
    JWT_SECRET_KEY = os.getenv("AUTH_SECRET_KEY")
    JWT_ALGORITHM = os.getenv("AUTH_ALGORITHM", "HS256")
    JWT_AUDIENCE = os.getenv("AUTH_AUDIENCE", "authenticated")

    # Application Insights
    APPLICATIONINSIGHTS_CONNECTION_STRING = os.getenv("APPINSIGHTS_CONNECTION_STRING")

    # Calendar
    CALENDAR_TEAM_ROLES = [
        role.strip()
        for role in os.getenv("CALENDAR_TEAM_ROLES", ",".join(role.value for role in TeamRole)).split(",")
        if role.strip()
    ]
