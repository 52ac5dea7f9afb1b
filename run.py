from kelasku import create_app, db
from kelasku.extensions import store
from kelasku.models import Account, StoreNode
import os

app = create_app()

# Shell context processor agar mudah testing di terminal
@app.shell_context_processor
def make_shell_context():
    return {'db': db, 'store': store, 'Account': Account, 'StoreNode': StoreNode}

if __name__ == '__main__':
    debug_mode = os.environ.get('FLASK_DEBUG', 'False').lower() == 'true'
    app.run(host='0.0.0.0', port=5000, debug=debug_mode)
