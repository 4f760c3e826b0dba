from functools import wraps

from django.http import JsonResponse


def api_login_required(view_func):
    """
    Like login_required, but answers JSON API callers with a 401 instead of
    redirecting them to the login page.
    """
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse({'error': 'Unauthorized'}, status=401)
        return view_func(request, *args, **kwargs)

    return wrapper
