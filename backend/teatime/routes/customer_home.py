from fastapi import Depends, HTTPException, Request

from ..di import get_unit_of_work
from ..domain import IUnitOfWork
from ..routing import ControllerRouter
from ..views import render

router = ControllerRouter(area="Customer", controller="Home")


@router.action("Index")
async def index(request: Request, uow: IUnitOfWork = Depends(get_unit_of_work)):
    products = await uow.product.get_all()
    return render(request, "customer/home/index.html", {"products": products})


@router.action("Details", id="required")
async def details(id: int, request: Request, uow: IUnitOfWork = Depends(get_unit_of_work)):
    product = await uow.product.get_by_id(id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return render(request, "customer/home/details.html", {"product": product})


@router.action("Privacy")
async def privacy(request: Request):
    return render(request, "customer/home/privacy.html")


@router.action("Error")
async def error(request: Request):
    return render(request, "shared/error.html")
