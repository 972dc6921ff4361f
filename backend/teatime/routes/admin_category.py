from fastapi import Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from ..di import get_unit_of_work
from ..domain import IUnitOfWork
from ..identity.authorization import authorize
from ..identity.roles import Roles
from ..models import Category
from ..routing import ControllerRouter
from ..schemas import CategoryForm, form_errors
from ..views import render, set_temp_data

router = ControllerRouter(
    area="Admin",
    controller="Category",
    dependencies=[Depends(authorize(Roles.ADMIN))],
)

INDEX_URL = "/Admin/Category"


async def _get_or_404(uow: IUnitOfWork, id: int) -> Category:
    category = await uow.category.get_by_id(id)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.action("Index")
async def index(request: Request, uow: IUnitOfWork = Depends(get_unit_of_work)):
    categories = await uow.category.get_all()
    return render(request, "admin/category/index.html", {"categories": categories})


@router.action("Create")
async def create(request: Request):
    return render(request, "admin/category/upsert.html", {"form": {}, "errors": {}})


@router.action("Create", methods=("POST",))
async def create_post(request: Request, uow: IUnitOfWork = Depends(get_unit_of_work)):
    data = dict(await request.form())
    try:
        form = CategoryForm.model_validate(data)
    except ValidationError as exc:
        return render(
            request, "admin/category/upsert.html", {"form": data, "errors": form_errors(exc)}
        )

    uow.category.add(Category(**form.model_dump()))
    await uow.save()
    set_temp_data(request, "success", "Category created successfully")
    return RedirectResponse(INDEX_URL, status_code=302)


@router.action("Edit", id="required")
async def edit(id: int, request: Request, uow: IUnitOfWork = Depends(get_unit_of_work)):
    category = await _get_or_404(uow, id)
    form = {"name": category.name, "display_order": category.display_order}
    return render(
        request, "admin/category/upsert.html", {"form": form, "errors": {}, "id": category.id}
    )


@router.action("Edit", methods=("POST",), id="required")
async def edit_post(id: int, request: Request, uow: IUnitOfWork = Depends(get_unit_of_work)):
    category = await _get_or_404(uow, id)
    data = dict(await request.form())
    try:
        form = CategoryForm.model_validate(data)
    except ValidationError as exc:
        return render(
            request,
            "admin/category/upsert.html",
            {"form": data, "errors": form_errors(exc), "id": category.id},
        )

    uow.category.update(category, form.model_dump())
    await uow.save()
    set_temp_data(request, "success", "Category updated successfully")
    return RedirectResponse(INDEX_URL, status_code=302)


@router.action("Delete", id="required")
async def delete(id: int, request: Request, uow: IUnitOfWork = Depends(get_unit_of_work)):
    category = await _get_or_404(uow, id)
    return render(request, "admin/category/delete.html", {"category": category})


@router.action("Delete", methods=("POST",), id="required")
async def delete_post(id: int, request: Request, uow: IUnitOfWork = Depends(get_unit_of_work)):
    category = await _get_or_404(uow, id)
    await uow.category.remove(category)
    await uow.save()
    set_temp_data(request, "success", "Category deleted successfully")
    return RedirectResponse(INDEX_URL, status_code=302)
