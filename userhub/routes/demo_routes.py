from typing import Any

from fastapi import APIRouter, Body

router = APIRouter(tags=['demo'])


@router.get('/')
def root():
    return {'status': 'User API Running', 'message': 'Welcome!'}


@router.post('/echo')
def echo(payload: Any = Body(...)):
    return payload


@router.get('/error')
def intentional_error():
    raise RuntimeError('Intentional error')
