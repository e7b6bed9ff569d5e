# util/constants.py
class InternalURIs:
    API = "/api"
    V1 = API + "/v1"
    QUEUE = V1 + "/queue"
    PROCESS = V1 + "/process"
    GROUPS = V1 + "/groups"
    GROUP = GROUPS + "/{group_id}"
    FINALIZE_GROUP = GROUP + "/finalize"


class ExternalURIs:
    GITHUB_ACCEPT = "application/vnd.github.v3+json"


METADATA_KEY = "metadata"
NO_DEMO_LINK = "No demo link provided"
