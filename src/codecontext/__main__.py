from codecontext.cli import main

main()
