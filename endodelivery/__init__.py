"""
Backend gestionale Endodelivery (studio di endodonzia a domicilio).

Struttura:
- config.py              : impostazioni da variabili d'ambiente (.env)
- db.py                  : engine e sessioni SQLAlchemy (SQLite o DATABASE_URL)
- models.py              : modelli ORM e enum
- services.py            : CRUD di dentisti, pazienti, procedure, fatture, appuntamenti
- dashboard_service.py   : statistiche dashboard e report per dentista
- goal_service.py        : metriche finanziarie e valutazione del progresso
- achievement_service.py : conquiste e assegnazione
- material_service.py    : materiali, scorte e costo per tipo di procedura
- api_main.py / routes/  : API FastAPI (JWT)
- seed.py / demo_data.py : dati iniziali e dati dimostrativi
- cli.py                 : comandi operativi da terminale
"""
