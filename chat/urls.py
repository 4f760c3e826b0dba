from django.urls import path

from . import views

app_name = 'chat'

urlpatterns = [
    path('api/chat/', views.chat_api, name='chat_api'),
    path('api/conversations/', views.create_conversation_api, name='create_conversation_api'),
    path('api/conversations/<int:conversation_id>/', views.conversation_detail_api, name='conversation_detail_api'),
    path('api/projects/<uuid:project_id>/conversations/', views.conversation_list_api, name='conversation_list_api'),
    path('api/models/available/', views.available_models, name='available_models'),
]
