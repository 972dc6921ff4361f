from fastapi import Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from ..di import get_unit_of_work
from ..domain import IUnitOfWork
from ..identity.authorization import authorize
from ..identity.roles import Roles
from ..models import Product
from ..routing import ControllerRouter
from ..schemas import ProductForm, form_errors
from ..views import render, set_temp_data

router = ControllerRouter(
    area="Admin",
    controller="Product",
    dependencies=[Depends(authorize(Roles.ADMIN))],
)

INDEX_URL = "/Admin/Product"


async def _get_or_404(uow: IUnitOfWork, id: int) -> Product:
    product = await uow.product.get_by_id(id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


async def _render_upsert(request, uow, form, errors, id=None):
    categories = await uow.category.get_all()
    return render(
        request,
        "admin/product/upsert.html",
        {"form": form, "errors": errors, "id": id, "categories": categories},
    )


@router.action("Index")
async def index(request: Request, uow: IUnitOfWork = Depends(get_unit_of_work)):
    products = await uow.product.get_all()
    return render(request, "admin/product/index.html", {"products": products})


@router.action("Upsert", id="optional")
async def upsert(request: Request, id: int | None = None, uow: IUnitOfWork = Depends(get_unit_of_work)):
    if id is None:
        return await _render_upsert(request, uow, {}, {})
    product = await _get_or_404(uow, id)
    form = {
        "name": product.name,
        "description": product.description,
        "size": product.size,
        "price": product.price,
        "category_id": product.category_id,
        "image_url": product.image_url,
    }
    return await _render_upsert(request, uow, form, {}, product.id)


@router.action("Upsert", methods=("POST",), id="optional")
async def upsert_post(
    request: Request, id: int | None = None, uow: IUnitOfWork = Depends(get_unit_of_work)
):
    data = dict(await request.form())
    try:
        form = ProductForm.model_validate(data)
    except ValidationError as exc:
        return await _render_upsert(request, uow, data, form_errors(exc), id)

    if await uow.category.get_by_id(form.category_id) is None:
        return await _render_upsert(
            request, uow, data, {"category_id": ["Select a valid category."]}, id
        )

    if id is None:
        uow.product.add(Product(**form.model_dump()))
        message = "Product created successfully"
    else:
        product = await _get_or_404(uow, id)
        uow.product.update(product, form.model_dump())
        message = "Product updated successfully"

    await uow.save()
    set_temp_data(request, "success", message)
    return RedirectResponse(INDEX_URL, status_code=302)


@router.action("Delete", id="required")
async def delete(id: int, request: Request, uow: IUnitOfWork = Depends(get_unit_of_work)):
    product = await _get_or_404(uow, id)
    return render(request, "admin/product/delete.html", {"product": product})


@router.action("Delete", methods=("POST",), id="required")
async def delete_post(id: int, request: Request, uow: IUnitOfWork = Depends(get_unit_of_work)):
    product = await _get_or_404(uow, id)
    await uow.product.remove(product)
    await uow.save()
    set_temp_data(request, "success", "Product deleted successfully")
    return RedirectResponse(INDEX_URL, status_code=302)
