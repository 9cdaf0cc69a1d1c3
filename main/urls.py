from django.urls import path
from main.views import machine_views, operator_views, machine_log_views, operator_entry_views
from main.views.health_views import HealthView


app_name = 'main'


urlpatterns = [
    path('machines', machine_views.machines, name='machine-list'),
    path('machines/<int:machine_id>', machine_views.machine_detail, name='machine-detail'),

    path('operators', operator_views.operators, name='operator-list'),
    path('operators/<int:operator_id>', operator_views.operator_detail, name='operator-detail'),

    path('machine-logs', machine_log_views.list_machine_logs, name='machine-log-list'),
    path('machine-logs/fulfill', machine_log_views.fulfill_order, name='machine-log-fulfill'),

    path('operator-entries/start', operator_entry_views.start_work, name='operator-entry-start'),
    path('operator-entries/stop', operator_entry_views.stop_work, name='operator-entry-stop'),
    path('operator-entries/open', operator_entry_views.open_entries, name='operator-entry-open'),

    path('health', HealthView.as_view(), name='health'),
]
