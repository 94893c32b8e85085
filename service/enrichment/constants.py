"""
Shared constants for enhancers and the pipeline factory.

The management API reserves application id "1" for traffic that is not tied
to any registered application. It has no resource behind it, so its name is
fixed here rather than looked up.
"""

UNKNOWN_ID: str = "1"
UNKNOWN_NAME: str = "Unknown"

# Written when a name could not be resolved, so the field is always present
DEFAULT_VALUE: str = ""

RESOURCE_NAME_ATTRIBUTE: str = "name"

APIS_PATH: str = "/apis"
API_NAME_FIELD: str = "api-name"

APPLICATIONS_PATH: str = "/applications"
APPLICATION_NAME_FIELD: str = "application-name"
