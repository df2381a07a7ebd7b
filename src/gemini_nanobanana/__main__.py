from gemini_nanobanana.cli import main

main()
