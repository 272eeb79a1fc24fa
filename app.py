# app.py
"""
Entrypoint dell'applicazione.

Uso:
  python app.py migrate --db riordino.db
  python app.py import vendite.xlsx
  python app.py catalogo --da-ordinare
  python app.py proposta genera
  python app.py proposta approva --da "Mario"
  python app.py archivio lista --cerca ABC
"""

from riordino.adapters.cli import main

if __name__ == "__main__":
    main()
