from dependency_injector import containers, providers
from posledger.v1_0.repositories import (
    ProductRepository,
    SaleRepository,
    SaleItemRepository,
    )
from posledger.v1_0.services import (
    ProductService,
    SaleService,
    )

class APIContainer(containers.DeclarativeContainer):
    product_repository = providers.Singleton(ProductRepository)
    sale_repository = providers.Singleton(SaleRepository)
    sale_item_repository = providers.Singleton(SaleItemRepository)

    product_service = providers.Singleton(
        ProductService,
        product_repository = product_repository
    )
    sale_service = providers.Singleton(
        SaleService,
        sale_repository = sale_repository,
        sale_item_repository = sale_item_repository,
        product_repository = product_repository
    )
