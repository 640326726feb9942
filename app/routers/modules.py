from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.current_user import get_current_user
from app.core.deps import get_db
from app.core.permissions import AuthorizationPolicy, get_authorization_policy
from app.models.course import Course
from app.models.course_module import CourseModule, ModuleResource
from app.models.enums import Activity
from app.models.user import User
from app.schemas.course_module import (
    ModuleCreate,
    ModuleRead,
    ModuleUpdate,
    ResourceCreate,
    ResourceRead,
    ResourceUpdate,
)

router = APIRouter()


def _ensure_course_exists(db: Session, course_id: int) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


def _ensure_module_exists(db: Session, course_id: int, module_id: int) -> CourseModule:
    module = (
        db.query(CourseModule)
        .filter(CourseModule.id == module_id, CourseModule.course_id == course_id)
        .first()
    )
    if not module:
        raise HTTPException(status_code=404, detail=f"Module {module_id} not found")
    return module


def _ensure_resource_exists(db: Session, module_id: int, resource_id: int) -> ModuleResource:
    resource = (
        db.query(ModuleResource)
        .filter(ModuleResource.id == resource_id, ModuleResource.module_id == module_id)
        .first()
    )
    if not resource:
        raise HTTPException(
            status_code=404,
            detail=f"Resource {resource_id} in module {module_id} not found",
        )
    return resource


# ---------- modules ----------

@router.post(
    "/{course_id}/modules",
    response_model=ModuleRead,
    status_code=status.HTTP_201_CREATED,
)
def create_module(
    course_id: int,
    payload: ModuleCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    _ensure_course_exists(db, course_id)
    policy.enforce(course_id, me.id, Activity.ADD_MODULE)

    module = CourseModule(course_id=course_id, **payload.model_dump())
    db.add(module)
    db.commit()
    db.refresh(module)
    return module


@router.get("/{course_id}/modules", response_model=list[ModuleRead])
def list_modules(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _ensure_course_exists(db, course_id)
    return (
        db.query(CourseModule)
        .filter(CourseModule.course_id == course_id)
        .order_by(CourseModule.order.asc(), CourseModule.id.asc())
        .all()
    )


@router.get("/{course_id}/modules/{module_id}", response_model=ModuleRead)
def get_module(
    course_id: int,
    module_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _ensure_course_exists(db, course_id)
    return _ensure_module_exists(db, course_id, module_id)


@router.patch("/{course_id}/modules/{module_id}", response_model=ModuleRead)
def update_module(
    course_id: int,
    module_id: int,
    payload: ModuleUpdate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    _ensure_course_exists(db, course_id)
    module = _ensure_module_exists(db, course_id, module_id)
    policy.enforce(course_id, me.id, Activity.EDIT_MODULE)

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(module, field, value)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(module)
    return module


@router.delete("/{course_id}/modules/{module_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_module(
    course_id: int,
    module_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    _ensure_course_exists(db, course_id)
    module = _ensure_module_exists(db, course_id, module_id)
    policy.enforce(course_id, me.id, Activity.DELETE_MODULE)

    db.delete(module)
    db.commit()


# ---------- resources ----------

@router.post(
    "/{course_id}/modules/{module_id}/resources",
    response_model=ResourceRead,
    status_code=status.HTTP_201_CREATED,
)
def create_resource(
    course_id: int,
    module_id: int,
    payload: ResourceCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    _ensure_course_exists(db, course_id)
    _ensure_module_exists(db, course_id, module_id)
    policy.require_staff(course_id, me.id, Activity.ADD_RESOURCE)

    duplicate = (
        db.query(ModuleResource)
        .filter(ModuleResource.module_id == module_id, ModuleResource.link == payload.link)
        .first()
    )
    if duplicate:
        raise HTTPException(
            status_code=409,
            detail=f"Resource {payload.link} already exists in module {module_id}",
        )

    policy.enforce(course_id, me.id, Activity.ADD_RESOURCE)

    resource = ModuleResource(module_id=module_id, **payload.model_dump())
    db.add(resource)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=409,
            detail=f"Resource {payload.link} already exists in module {module_id}",
        )

    db.refresh(resource)
    return resource


@router.get("/{course_id}/modules/{module_id}/resources", response_model=list[ResourceRead])
def list_resources(
    course_id: int,
    module_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _ensure_course_exists(db, course_id)
    _ensure_module_exists(db, course_id, module_id)
    return (
        db.query(ModuleResource)
        .filter(ModuleResource.module_id == module_id)
        .order_by(ModuleResource.order.asc(), ModuleResource.id.asc())
        .all()
    )


@router.patch(
    "/{course_id}/modules/{module_id}/resources/{resource_id}",
    response_model=ResourceRead,
)
def update_resource(
    course_id: int,
    module_id: int,
    resource_id: int,
    payload: ResourceUpdate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    _ensure_course_exists(db, course_id)
    _ensure_module_exists(db, course_id, module_id)
    resource = _ensure_resource_exists(db, module_id, resource_id)
    policy.enforce(course_id, me.id, Activity.EDIT_RESOURCE)

    resource.order = payload.order
    db.commit()
    db.refresh(resource)
    return resource


@router.delete(
    "/{course_id}/modules/{module_id}/resources/{resource_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_resource(
    course_id: int,
    module_id: int,
    resource_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    _ensure_course_exists(db, course_id)
    _ensure_module_exists(db, course_id, module_id)
    resource = _ensure_resource_exists(db, module_id, resource_id)
    policy.enforce(course_id, me.id, Activity.DELETE_RESOURCE)

    db.delete(resource)
    db.commit()
