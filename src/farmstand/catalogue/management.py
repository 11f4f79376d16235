"""Product administration: commands and handler."""

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from farmstand.catalogue.product import Product
from farmstand.domain import farmstand


@farmstand.command(part_of="Product")
class CreateProduct:
    title: String(required=True, max_length=255)
    price: Integer(required=True, min_value=0)
    stock: Integer(min_value=0)
    handle: String(max_length=255)
    category: String(max_length=100)
    sku: String(max_length=50)
    description: Text()
    variants_config: Text()


@farmstand.command(part_of="Product")
class ConfigureVariants:
    product_id: Identifier(required=True)
    variants_config: Text()


@farmstand.command(part_of="Product")
class SetProductStock:
    product_id: Identifier(required=True)
    stock: Integer(min_value=0)


@farmstand.command_handler(part_of=Product)
class ProductManagementHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        product = Product.create(
            title=command.title,
            price=command.price,
            stock=command.stock,
            handle=command.handle,
            category=command.category,
            sku=command.sku,
            description=command.description,
            variants_config=command.variants_config,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(ConfigureVariants)
    def configure_variants(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.configure_variants(command.variants_config)
        repo.add(product)

    @handle(SetProductStock)
    def set_stock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.set_stock(command.stock)
        repo.add(product)
