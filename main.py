import click
from uuid import UUID
from marketplace.core.logging import get_logger
from marketplace.db.base import SessionLocal
from marketplace.db.repositories.supplier_repository import SupplierRepository
from marketplace.services.category_service import CategoryService
import uvicorn

logger = get_logger(__name__)


@click.group()
def cli():
    """Marketplace CLI"""
    pass


@cli.command()
@click.option("--host", default="0.0.0.0")
@click.option("--port", default=8000)
@click.option("--workers", default=1)
@click.option("--production", is_flag=True, help="Run in production mode")
def serve(host, port, workers, production):
    """Start the API server"""
    reload = not production  # Auto-reload unless production mode

    uvicorn.run(
        "marketplace.api.web_app:app",
        host=host,
        port=port,
        reload=reload,
        workers=workers if production else 1,
        log_level="info" if production else "debug",
    )


@cli.command()
@click.argument("name")
@click.option("--subdomain", default=None, help="Subdomain; derived from the name when omitted")
def create_supplier(name, subdomain):
    """Register a supplier (tenant)"""
    db_session = SessionLocal()
    try:
        supplier = SupplierRepository(db_session).create(name, subdomain=subdomain)
        click.echo(f"Supplier created: {supplier.id} ({supplier.subdomain})")
    finally:
        db_session.close()


@cli.command()
@click.option("--supplier", "supplier_id", default=None, help="Supplier ID; all suppliers when omitted")
def check_integrity(supplier_id):
    """Scan stored category trees for cycles and dangling parents"""
    db_session = SessionLocal()
    try:
        service = CategoryService(db_session)
        if supplier_id:
            supplier_ids = [UUID(supplier_id)]
        else:
            supplier_ids = [supplier.id for supplier in SupplierRepository(db_session).list(0, 10000)]

        problems = 0
        for owner_id in supplier_ids:
            report = service.check_integrity(owner_id)
            if report.ok:
                click.echo(f"{owner_id}: OK ({report.total} categories)")
                continue
            problems += 1
            click.echo(f"{owner_id}: {report.total} categories")
            for cycle in report.cycles:
                click.echo(f"  cycle: {' -> '.join(str(category_id) for category_id in cycle)}")
            for category_id in report.dangling_parents:
                click.echo(f"  dangling parent: {category_id}")

        if problems:
            raise click.exceptions.Exit(1)
    finally:
        db_session.close()


if __name__ == "__main__":
    cli()
