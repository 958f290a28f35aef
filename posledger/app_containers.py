from dependency_injector import containers, providers
from posledger.v1_0.v1_containers import APIContainer

class ApplicationContainer(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(
        modules=[
                "posledger.v1_0.routers.product_router",
                "posledger.v1_0.routers.sale_router",
            ]
    )
    api_container = providers.Container(
        APIContainer
    )
