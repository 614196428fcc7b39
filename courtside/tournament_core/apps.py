from django.apps import AppConfig


class TournamentCoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'courtside.tournament_core'
    verbose_name = 'Tournament Scheduling Engine'
