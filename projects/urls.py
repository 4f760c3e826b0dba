from django.urls import path
from . import views


app_name = 'projects'


urlpatterns = [
    path('projects/api/', views.project_list_api, name='project_list_api'),
    path('projects/api/<uuid:project_id>/', views.project_detail_api, name='project_detail_api'),
    path('projects/api/<uuid:project_id>/pieces/<str:piece_type>/open/', views.open_piece_api, name='open_piece_api'),
    path('api/pieces/complete/', views.complete_piece_api, name='complete_piece_api'),
]
