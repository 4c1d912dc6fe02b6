import sys
import importlib
import io
import os


# Fail loudly and helpfully if required Python packages are missing.
def _require_modules(mods):
    missing = []
    for m in mods:
        try:
            importlib.import_module(m)
        except ImportError:
            missing.append(m)
    if missing:
        print("\nERROR: Missing required Python package(s): {}".format(', '.join(missing)))
        print("Install them with:")
        print("  python -m pip install -e .")
        sys.exit(1)


_require_modules(['flask', 'numpy'])

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from flask import Flask, request, send_file, jsonify
from WTSE.errors import WTSEError
from WTSE.SMM.config import config_from_env
from WTSE.SGM.export_bridge import render_wav

app = Flask(__name__)


@app.route('/py-bridge/render', methods=['POST'])
def render():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return jsonify({'error': 'expected a JSON object body'}), 400
    if not str(body.get('melody', '')).strip():
        return jsonify({'error': 'missing field `melody`'}), 400
    try:
        wav, _config, _notes = render_wav(body, config_from_env())
    except (WTSEError, ValueError, TypeError) as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        app.logger.exception('render failed')
        return jsonify({'error': str(e)}), 500
    name = str(body.get('filename', 'melody.wav'))
    return send_file(io.BytesIO(wav), mimetype='audio/wav',
                     as_attachment=True, download_name=name)


@app.route('/py-bridge/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok'})


if __name__ == '__main__':
    # Run on localhost:5000 by default
    app.run(host='127.0.0.1', port=5000)
