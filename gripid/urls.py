from django.conf import settings
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = settings.ADMIN_SITE_HEADER
admin.site.site_title = settings.ADMIN_SITE_TITLE
admin.site.index_title = settings.ADMIN_INDEX_TITLE

urlpatterns = [
    path('admin/', admin.site.urls),

    # JSON API
    path('api/', include('devices.urls')),
]
