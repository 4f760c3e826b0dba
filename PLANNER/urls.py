from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('chat.urls')),  # Chat + conversation APIs
    path('', include('projects.urls')),  # Projects + piece APIs
]
