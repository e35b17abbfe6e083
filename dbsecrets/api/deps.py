from typing import Annotated

from fastapi import Depends

from dbsecrets.core.connection_config import (
    ConnectionConfigService,
    get_connection_config_service,
)

ConnectionConfigServiceDep = Annotated[
    ConnectionConfigService, Depends(get_connection_config_service)
]
